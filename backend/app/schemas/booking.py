# backend/app/schemas/booking.py
"""
Booking schemas.

Request models validate customer input before it reaches the booking ledger;
response models expose bookings without internal payment identifiers.
"""

from datetime import date, datetime, time
import re
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH, MAX_PARTY_SIZE, MAX_REASON_LENGTH, MIN_PARTY_SIZE
from ..models.booking import BookingStatus, PaymentStatus
from ..models.time_slot import SessionKind
from ._strict_base import OrmResponseModel, StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _parse_hh_mm(value: object) -> object:
    if isinstance(value, str):
        try:
            hour, minute = value.strip().split(":")[:2]
            return time(int(hour), int(minute))
        except (ValueError, TypeError):
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value


class BookingCheckoutRequest(StrictRequestModel):
    """
    Request a booking for one session window.

    The slot is addressed by date, start time and session kind. A signed
    liability waiver is required for every booking.
    """

    session_kind: SessionKind
    slot_date: date = Field(..., description="Session date (YYYY-MM-DD)")
    start_time: time = Field(..., description="Session start time (HH:MM)")
    party_size: int = Field(..., ge=MIN_PARTY_SIZE, le=MAX_PARTY_SIZE)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(default=None, max_length=40)
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)
    waiver_id: str = Field(..., min_length=1, max_length=26)

    @field_validator("slot_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "slot_date")

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        """Convert time strings to time objects."""
        return _parse_hh_mm(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BookingCancelRequest(StrictRequestModel):
    """Schema for cancelling a booking (admin)."""

    reason: str = Field(..., min_length=1, max_length=MAX_REASON_LENGTH)
    refund: bool = False


class TimeSlotSummary(OrmResponseModel):
    id: str
    slot_date: date
    start_time: time
    end_time: time
    slot_kind: SessionKind


class BookingResponse(OrmResponseModel):
    id: str
    session_kind: SessionKind
    party_size: int
    customer_name: str
    customer_email: str
    total_amount_cents: int
    status: BookingStatus
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    time_slot: Optional[TimeSlotSummary] = None


class BookingCheckoutResponse(StrictModel):
    booking: BookingResponse
    requires_payment: bool
    checkout_url: Optional[str] = None
    checkout_expires_at: Optional[datetime] = None


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]
    total: int
    limit: int
    offset: int


class PriceQuoteResponse(StrictModel):
    session_kind: SessionKind
    party_size: int
    base_price_cents: int
    member_discount_cents: int
    final_price_cents: int
    is_member: bool
