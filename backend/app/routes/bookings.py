# backend/app/routes/bookings.py
"""
Booking routes.

Router Endpoints:
    GET /bookings/quote - Price a session for the caller (member-aware)
    POST /bookings/checkout - Create a booking and start payment
    GET /bookings/details - Booking for a completed checkout session
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..api.dependencies import get_booking_service, get_current_user_optional, get_pricing_service
from ..core.constants import MAX_PARTY_SIZE, MIN_PARTY_SIZE
from ..core.exceptions import DomainException
from ..models.time_slot import SessionKind
from ..models.user import User
from ..schemas.booking import (
    BookingCheckoutRequest,
    BookingCheckoutResponse,
    BookingResponse,
    PriceQuoteResponse,
)
from ..services.booking_service import BookingService
from ..services.pricing_service import PricingService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/quote", response_model=PriceQuoteResponse)
def quote_booking(
    session_kind: SessionKind = Query(..., alias="type"),
    party_size: int = Query(..., ge=MIN_PARTY_SIZE, le=MAX_PARTY_SIZE),
    current_user: Optional[User] = Depends(get_current_user_optional),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PriceQuoteResponse:
    try:
        quote = pricing_service.quote(
            session_kind, party_size, user_id=current_user.id if current_user else None
        )
    except DomainException as e:
        handle_domain_exception(e)

    return PriceQuoteResponse(
        session_kind=quote.session_kind,
        party_size=quote.party_size,
        base_price_cents=quote.base_price_cents,
        member_discount_cents=quote.member_discount_cents,
        final_price_cents=quote.final_price_cents,
        is_member=quote.is_member,
    )


@router.post(
    "/checkout", response_model=BookingCheckoutResponse, status_code=status.HTTP_201_CREATED
)
def create_checkout(
    payload: BookingCheckoutRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCheckoutResponse:
    """
    Create a booking for a session window.

    Paid bookings come back pending with a hosted checkout URL. Bookings that
    cost nothing (community sessions for active members) come back confirmed.
    """
    try:
        result = booking_service.request_booking(payload, user=current_user)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCheckoutResponse(
        booking=BookingResponse.model_validate(result.booking),
        requires_payment=result.requires_payment,
        checkout_url=result.checkout_url,
        checkout_expires_at=result.expires_at,
    )


@router.get("/details", response_model=BookingResponse)
def get_booking_details(
    session_id: str = Query(..., min_length=1, max_length=255),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Look up a booking by its Stripe checkout session id (success page)."""
    try:
        booking = booking_service.get_by_checkout_session(session_id)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingResponse.model_validate(booking)
