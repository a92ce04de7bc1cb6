# backend/app/services/stripe_service.py
"""
Stripe Service

Thin gateway over the Stripe API for:
- Hosted checkout sessions for bookings and memberships
- Refunds
- Customers and subscription cancellation
- Webhook signature verification

Business decisions (what to charge, when to confirm) live in the booking and
membership services. When STRIPE_SECRET_KEY is unset the service runs in mock
mode and every API call raises ServiceException.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from ..core.config import settings
from ..core.constants import (
    BOOKING_CANCEL_PATH,
    BOOKING_SUCCESS_PATH,
    BRAND_NAME,
    MEMBERSHIP_CANCEL_PATH,
    MEMBERSHIP_SUCCESS_PATH,
)
from ..core.exceptions import ServiceException
from ..models.booking import Booking
from ..models.time_slot import SessionKind, TimeSlot
from .base import BaseService

logger = logging.getLogger(__name__)


def stripe_field(obj: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a Stripe object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


@dataclass(frozen=True)
class HostedCheckout:
    session_id: str
    url: str
    expires_at: datetime


class StripeService:
    """Gateway for Stripe API calls."""

    def __init__(self, checkout_expiry_minutes: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.checkout_expiry_minutes = checkout_expiry_minutes or settings.checkout_expiry_minutes
        self.currency = settings.stripe_currency

        self.stripe_configured = False
        if settings.stripe_configured:
            stripe.api_key = settings.stripe_secret_key.get_secret_value()
            stripe.max_network_retries = 1
            self.stripe_configured = True
            self.logger.info("Stripe service configured successfully")
        else:
            self.logger.warning("Stripe secret key not configured - service will operate in mock mode")

    def _check_stripe_configured(self) -> None:
        """Check if Stripe is properly configured before making API calls."""
        if not self.stripe_configured:
            raise ServiceException(
                "Stripe service not configured. Please check STRIPE_SECRET_KEY environment variable.",
                code="STRIPE_NOT_CONFIGURED",
            )

    # ------------------------------------------------------------------ #
    # Booking checkout
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("stripe_create_booking_checkout")
    def create_booking_checkout(self, booking: Booking, slot: TimeSlot) -> HostedCheckout:
        """
        Create a hosted payment page for a pending booking.

        Community sessions are sold per person (quantity = party size); private
        sessions are a single flat line item.
        """
        self._check_stripe_configured()

        kind = SessionKind(booking.session_kind)
        if kind == SessionKind.COMMUNITY:
            quantity = booking.party_size
            unit_amount = booking.total_amount_cents // booking.party_size
            product_name = f"Community Sauna Session ({booking.party_size} guests)"
        else:
            quantity = 1
            unit_amount = booking.total_amount_cents
            product_name = "Private Sauna Session"

        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.checkout_expiry_minutes)
        description = (
            f"{slot.slot_date.strftime('%A, %B %-d, %Y')} "
            f"{slot.start_time.strftime('%-I:%M %p')} - {slot.end_time.strftime('%-I:%M %p')}"
        )

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                payment_method_types=["card"],
                customer_email=booking.customer_email,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": product_name, "description": description},
                            "unit_amount": unit_amount,
                        },
                        "quantity": quantity,
                    }
                ],
                metadata={
                    "booking_id": booking.id,
                    "time_slot_id": slot.id,
                    "session_kind": kind.value,
                    "party_size": str(booking.party_size),
                    "customer_name": booking.customer_name,
                    "waiver_id": booking.waiver_id or "",
                    "user_id": booking.user_id or "",
                },
                payment_intent_data={"metadata": {"booking_id": booking.id}},
                client_reference_id=booking.id,
                expires_at=int(expires_at.timestamp()),
                success_url=(
                    f"{settings.frontend_url}{BOOKING_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}"
                ),
                cancel_url=f"{settings.frontend_url}{BOOKING_CANCEL_PATH}",
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error creating checkout for booking {booking.id}: {str(e)}")
            raise ServiceException(f"Failed to create checkout session: {str(e)}") from e

        return HostedCheckout(
            session_id=stripe_field(session, "id"),
            url=stripe_field(session, "url"),
            expires_at=expires_at,
        )

    @BaseService.measure_operation("stripe_retrieve_checkout_session")
    def retrieve_checkout_session(self, session_id: str) -> Any:
        self._check_stripe_configured()
        try:
            return stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error retrieving checkout session {session_id}: {str(e)}")
            raise ServiceException(f"Failed to retrieve checkout session: {str(e)}") from e

    @BaseService.measure_operation("stripe_refund_payment")
    def refund_payment(
        self,
        payment_intent_id: str,
        amount_cents: Optional[int] = None,
        reason: str = "requested_by_customer",
    ) -> str:
        """
        Refund a payment intent (fully unless ``amount_cents`` is given).

        Returns:
            The Stripe refund id
        """
        self._check_stripe_configured()
        params: Dict[str, Any] = {"payment_intent": payment_intent_id, "reason": reason}
        if amount_cents is not None:
            params["amount"] = amount_cents
        try:
            refund = stripe.Refund.create(**params)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error refunding {payment_intent_id}: {str(e)}")
            raise ServiceException(f"Failed to refund payment: {str(e)}") from e
        self.logger.info(f"Refunded payment intent {payment_intent_id}")
        return stripe_field(refund, "id")

    # ------------------------------------------------------------------ #
    # Customers and memberships
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("stripe_create_customer")
    def create_customer(self, user_id: str, email: str, name: Optional[str]) -> str:
        self._check_stripe_configured()
        try:
            customer = stripe.Customer.create(
                email=email, name=name or email, metadata={"user_id": user_id}
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error creating customer for user {user_id}: {str(e)}")
            raise ServiceException(f"Failed to create customer: {str(e)}") from e
        return stripe_field(customer, "id")

    def retrieve_customer(self, customer_id: str) -> Any:
        self._check_stripe_configured()
        try:
            return stripe.Customer.retrieve(customer_id)
        except stripe.StripeError as e:
            raise ServiceException(f"Failed to retrieve customer: {str(e)}") from e

    @BaseService.measure_operation("stripe_create_membership_checkout")
    def create_membership_checkout(
        self,
        customer_id: str,
        price_id: str,
        user_id: str,
        membership_kind: str,
    ) -> HostedCheckout:
        self._check_stripe_configured()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.checkout_expiry_minutes)
        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                line_items=[{"price": price_id, "quantity": 1}],
                metadata={"user_id": user_id, "membership_kind": membership_kind},
                subscription_data={
                    "metadata": {"user_id": user_id, "membership_kind": membership_kind},
                    "description": f"{BRAND_NAME} {membership_kind} membership",
                },
                expires_at=int(expires_at.timestamp()),
                success_url=(
                    f"{settings.frontend_url}{MEMBERSHIP_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}"
                ),
                cancel_url=f"{settings.frontend_url}{MEMBERSHIP_CANCEL_PATH}",
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error creating membership checkout: {str(e)}")
            raise ServiceException(f"Failed to create membership checkout: {str(e)}") from e
        return HostedCheckout(
            session_id=stripe_field(session, "id"),
            url=stripe_field(session, "url"),
            expires_at=expires_at,
        )

    @BaseService.measure_operation("stripe_cancel_subscription")
    def cancel_subscription_at_period_end(self, subscription_id: str) -> Any:
        self._check_stripe_configured()
        try:
            return stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error cancelling subscription {subscription_id}: {str(e)}")
            raise ServiceException(f"Failed to cancel subscription: {str(e)}") from e

    # ------------------------------------------------------------------ #
    # Webhooks
    # ------------------------------------------------------------------ #

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """
        Verify Stripe webhook signature.

        Args:
            payload: Raw webhook payload
            signature: Stripe signature header

        Returns:
            True if signature is valid

        Raises:
            ServiceException: If the webhook secret is not configured
        """
        secret_value = settings.stripe_webhook_secret.get_secret_value()
        if not secret_value:
            raise ServiceException("Webhook secret not configured", code="WEBHOOK_NOT_CONFIGURED")

        try:
            stripe.Webhook.construct_event(payload, signature, secret_value)
            return True
        except stripe.SignatureVerificationError:
            self.logger.warning("Invalid webhook signature")
            return False
        except ValueError:
            self.logger.warning("Malformed webhook payload")
            return False
