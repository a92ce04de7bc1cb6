"""Strict schema baselines shared by the booking API models."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Response DTO base; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class OrmResponseModel(StrictModel):
    """Response DTO read straight off an ORM row (booking, slot, membership, waiver)."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class StrictRequestModel(StrictModel):
    """Request body base: unknown fields are rejected and strings trimmed."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)
