"""Private event request and contact form schemas."""

from datetime import date
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from ..core.constants import MAX_EVENT_GUESTS
from ._strict_base import StrictModel, StrictRequestModel
from .booking import _ensure_date_only


class EventRequest(StrictRequestModel):
    """A request to hire the sauna for a private event."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=40)
    event_type: str = Field(..., min_length=1, max_length=100, description="Birthday, team outing, ...")
    preferred_date: date
    guests: int = Field(..., ge=1, le=MAX_EVENT_GUESTS)
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("preferred_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "preferred_date")


class ContactRequest(StrictRequestModel):
    """A message sent through the contact form."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=40)
    message: str = Field(..., min_length=1, max_length=5000)


class EnquiryResponse(StrictModel):
    message: str
