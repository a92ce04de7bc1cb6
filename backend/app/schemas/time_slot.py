# backend/app/schemas/time_slot.py
"""Time slot schemas for availability listings and admin slot management."""

from datetime import date, time
from typing import List

from pydantic import Field, field_validator, model_validator

from ..core.constants import DEFAULT_SLOT_CAPACITY, SLOT_HORIZON_DAYS
from ..models.time_slot import SessionKind
from ._strict_base import OrmResponseModel, StrictModel, StrictRequestModel
from .booking import _ensure_date_only, _parse_hh_mm


class AvailableSlotResponse(StrictModel):
    slot_id: str
    slot_date: date
    start_time: time
    end_time: time
    time_display: str
    session_kind: SessionKind
    max_capacity: int
    spots_remaining: int


class AvailableSlotsResponse(StrictModel):
    slot_date: date
    session_kind: SessionKind
    slots: List[AvailableSlotResponse]


class BookabilityResponse(StrictModel):
    slot_date: date
    start_time: time
    session_kind: SessionKind
    party_size: int
    bookable: bool


class GenerateSlotsRequest(StrictRequestModel):
    days_ahead: int = Field(default=SLOT_HORIZON_DAYS, ge=0, le=365)


class GenerateSlotsResponse(StrictModel):
    created: int
    days_ahead: int


class TimeSlotCreate(StrictRequestModel):
    slot_date: date
    start_time: time
    end_time: time
    slot_kind: SessionKind = SessionKind.COMMUNITY
    max_capacity: int = Field(default=DEFAULT_SLOT_CAPACITY, ge=1, le=50)

    @field_validator("slot_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "slot_date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return _parse_hh_mm(v)

    @model_validator(mode="after")
    def _window_order(self) -> "TimeSlotCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TimeSlotResponse(OrmResponseModel):
    id: str
    slot_date: date
    start_time: time
    end_time: time
    slot_kind: SessionKind
    max_capacity: int
    current_bookings: int
    is_available: bool
