"""Membership schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ..models.membership import MembershipKind, MembershipStatus
from ._strict_base import OrmResponseModel, StrictModel, StrictRequestModel


class MembershipResponse(OrmResponseModel):
    user_id: str
    membership_kind: MembershipKind
    status: MembershipStatus
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MembershipStatusResponse(StrictModel):
    is_active: bool
    membership: Optional[MembershipResponse] = None


class MembershipCheckoutRequest(StrictRequestModel):
    membership_kind: MembershipKind = Field(..., description="monthly, annual or lifetime")


class MembershipCheckoutResponse(StrictModel):
    checkout_url: str
    session_id: str
    expires_at: datetime


class MembershipCancelResponse(StrictModel):
    status: MembershipStatus
    access_ends_on: Optional[date] = None


class MembershipListResponse(StrictModel):
    memberships: List[MembershipResponse]
    limit: int
    offset: int
