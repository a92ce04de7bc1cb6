"""Liability waiver schemas."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from ._strict_base import OrmResponseModel, StrictModel, StrictRequestModel


class WaiverSignRequest(StrictRequestModel):
    """A participant signing the current liability waiver."""

    signer_name: str = Field(..., min_length=1, max_length=200)
    signer_email: EmailStr
    signer_phone: Optional[str] = Field(default=None, max_length=40)
    emergency_contact_name: str = Field(..., min_length=1, max_length=200)
    emergency_contact_phone: str = Field(..., min_length=1, max_length=40)
    agreed: bool = Field(..., description="Participant accepted the waiver terms")

    @field_validator("agreed")
    @classmethod
    def must_agree(cls, v: bool) -> bool:
        if not v:
            raise ValueError("The waiver must be accepted before booking")
        return v


class WaiverResponse(OrmResponseModel):
    id: str
    signer_name: str
    signer_email: str
    waiver_version: str
    signed_at: Optional[datetime] = None


class WaiverTextResponse(StrictModel):
    waiver_version: str
    waiver_text: str
