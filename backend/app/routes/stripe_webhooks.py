"""
Stripe Webhook Endpoint

Handles signed Stripe events for booking payments and membership
subscriptions.

Key Features:
- Webhook signature verification for security
- Booking confirmation on completed checkout
- Booking failure on expired or failed checkout
- Membership sync on subscription changes
- Idempotent event processing (redelivery is harmless)
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..api.dependencies import get_booking_service, get_membership_service, get_stripe_service
from ..core.exceptions import DomainException, NotFoundException
from ..schemas.payment_schemas import WebhookResponse
from ..services.booking_service import BookingService, ConfirmOutcome
from ..services.membership_service import MembershipService
from ..services.stripe_service import StripeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["stripe-webhooks"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}
CHECKOUT_FAILURE_EVENTS = {
    "checkout.session.expired",
    "checkout.session.async_payment_failed",
}


def _booking_id_from_session(session: Dict[str, Any]) -> str | None:
    metadata = session.get("metadata") or {}
    return metadata.get("booking_id") or session.get("client_reference_id")


def _handle_checkout_completed(
    event_type: str, session: Dict[str, Any], booking_service: BookingService
) -> WebhookResponse:
    if session.get("mode") != "payment":
        return WebhookResponse(status="ignored", event_type=event_type, message="Not a booking checkout")
    if session.get("payment_status") not in ("paid", "no_payment_required"):
        return WebhookResponse(status="ignored", event_type=event_type, message="Payment not yet settled")

    booking_id = _booking_id_from_session(session)
    result = booking_service.confirm_paid(
        booking_id=booking_id,
        checkout_session_id=None if booking_id else session.get("id"),
        payment_intent_id=session.get("payment_intent"),
    )
    if result.outcome == ConfirmOutcome.REJECTED:
        return WebhookResponse(
            status="rejected",
            event_type=event_type,
            message=f"Booking {result.booking.id} refunded: slot no longer available",
        )
    if result.outcome == ConfirmOutcome.IGNORED:
        return WebhookResponse(status="ignored", event_type=event_type, message="Booking already settled")
    return WebhookResponse(status="success", event_type=event_type)


@router.post("/stripe", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    booking_service: BookingService = Depends(get_booking_service),
    membership_service: MembershipService = Depends(get_membership_service),
) -> WebhookResponse:
    """
    Handle Stripe webhook events.

    Processes:
    - checkout.session.completed (booking payments)
    - checkout.session.expired / async_payment_failed
    - customer.subscription.created / updated / deleted

    Raises:
        HTTPException: 400 on a missing or invalid signature, 500 if processing fails
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        logger.warning("Missing Stripe signature header")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing stripe-signature header"
        )

    try:
        valid = stripe_service.verify_webhook_signature(payload, signature)
    except DomainException as e:
        logger.error(f"Webhook verification unavailable: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook not configured"
        )
    if not valid:
        logger.warning("Invalid Stripe webhook signature")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    event = json.loads(payload.decode("utf-8"))
    event_type = event.get("type", "")
    data_object = (event.get("data") or {}).get("object") or {}

    logger.info(f"Processing Stripe webhook event: {event_type}")

    try:
        if event_type == "checkout.session.completed":
            return _handle_checkout_completed(event_type, data_object, booking_service)

        if event_type in CHECKOUT_FAILURE_EVENTS:
            if data_object.get("mode") != "payment":
                return WebhookResponse(status="ignored", event_type=event_type)
            booking_id = _booking_id_from_session(data_object)
            reason = "checkout_expired" if event_type.endswith("expired") else "payment_failed"
            moved = booking_service.mark_failed(
                booking_id=booking_id,
                checkout_session_id=None if booking_id else data_object.get("id"),
                reason=reason,
            )
            return WebhookResponse(status="success" if moved else "ignored", event_type=event_type)

        if event_type in SUBSCRIPTION_EVENTS:
            membership = membership_service.sync_from_subscription(data_object)
            if membership is None:
                return WebhookResponse(status="ignored", event_type=event_type, message="No matching user")
            return WebhookResponse(status="success", event_type=event_type)

        logger.info(f"Unhandled webhook event type: {event_type}")
        return WebhookResponse(status="ignored", event_type=event_type)

    except NotFoundException as e:
        logger.warning(f"Webhook {event_type} references an unknown booking: {e.details}")
        return WebhookResponse(status="ignored", event_type=event_type, message=e.message)
    except DomainException as e:
        logger.error(f"Error processing Stripe webhook {event_type}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process webhook"
        )
