# backend/app/routes/memberships.py
"""
Membership routes.

Router Endpoints:
    GET /memberships/me - Caller's membership and whether it is active
    POST /memberships/checkout - Start a subscription checkout
    POST /memberships/cancel - Cancel at the end of the current period
"""

import logging

from fastapi import APIRouter, Depends

from ..api.dependencies import get_current_user, get_membership_service
from ..core.exceptions import DomainException
from ..models.membership import MembershipStatus
from ..models.user import User
from ..schemas.membership import (
    MembershipCancelResponse,
    MembershipCheckoutRequest,
    MembershipCheckoutResponse,
    MembershipResponse,
    MembershipStatusResponse,
)
from ..services.membership_service import MembershipService
from ..services.pricing_service import is_active_member
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/memberships", tags=["memberships"])


@router.get("/me", response_model=MembershipStatusResponse)
def get_my_membership(
    current_user: User = Depends(get_current_user),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipStatusResponse:
    membership = membership_service.get_for_user(current_user.id)
    return MembershipStatusResponse(
        is_active=is_active_member(membership),
        membership=MembershipResponse.model_validate(membership) if membership else None,
    )


@router.post("/checkout", response_model=MembershipCheckoutResponse)
def start_membership_checkout(
    payload: MembershipCheckoutRequest,
    current_user: User = Depends(get_current_user),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipCheckoutResponse:
    try:
        checkout = membership_service.start_checkout(current_user, payload.membership_kind)
    except DomainException as e:
        handle_domain_exception(e)

    return MembershipCheckoutResponse(
        checkout_url=checkout.url,
        session_id=checkout.session_id,
        expires_at=checkout.expires_at,
    )


@router.post("/cancel", response_model=MembershipCancelResponse)
def cancel_membership(
    current_user: User = Depends(get_current_user),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipCancelResponse:
    try:
        ends_on = membership_service.cancel(current_user)
    except DomainException as e:
        handle_domain_exception(e)

    logger.info(f"User {current_user.id} cancelled membership; access ends {ends_on}")
    return MembershipCancelResponse(status=MembershipStatus.CANCELLED, access_ends_on=ends_on)
