from datetime import time
from unittest.mock import patch

import pytest
import stripe

from app.core.exceptions import ServiceException
from app.models.time_slot import SessionKind
from app.services.stripe_service import StripeService, stripe_field


@pytest.fixture
def stripe_gateway():
    return StripeService()


def test_community_checkout_sells_per_person(stripe_gateway, make_slot, make_booking):
    slot = make_slot(start=time(19, 0))
    booking = make_booking(slot, party_size=3, amount_cents=7500)

    with patch("stripe.checkout.Session.create") as create:
        create.return_value = {"id": "cs_test_abc", "url": "https://checkout.stripe.com/c/pay/cs_test_abc"}
        checkout = stripe_gateway.create_booking_checkout(booking, slot)

    assert checkout.session_id == "cs_test_abc"
    assert checkout.url.endswith("cs_test_abc")
    kwargs = create.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["line_items"][0]["quantity"] == 3
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 2500
    assert kwargs["metadata"]["booking_id"] == booking.id
    assert kwargs["metadata"]["session_kind"] == "community"
    assert kwargs["client_reference_id"] == booking.id
    assert "{CHECKOUT_SESSION_ID}" in kwargs["success_url"]


def test_private_checkout_is_one_flat_item(stripe_gateway, make_slot, make_booking):
    slot = make_slot(start=time(10, 0), kind=SessionKind.PRIVATE)
    booking = make_booking(slot, party_size=5, amount_cents=20000)

    with patch("stripe.checkout.Session.create") as create:
        create.return_value = {"id": "cs_test_private", "url": "https://checkout.stripe.com/c/pay/x"}
        stripe_gateway.create_booking_checkout(booking, slot)

    item = create.call_args.kwargs["line_items"][0]
    assert item["quantity"] == 1
    assert item["price_data"]["unit_amount"] == 20000


def test_checkout_error_becomes_service_exception(stripe_gateway, make_slot, make_booking):
    slot = make_slot()
    booking = make_booking(slot)

    with patch("stripe.checkout.Session.create", side_effect=stripe.APIConnectionError("offline")):
        with pytest.raises(ServiceException):
            stripe_gateway.create_booking_checkout(booking, slot)


def test_refund_payment(stripe_gateway):
    with patch("stripe.Refund.create", return_value={"id": "re_123"}) as create:
        assert stripe_gateway.refund_payment("pi_123") == "re_123"

    create.assert_called_once_with(payment_intent="pi_123", reason="requested_by_customer")


def test_partial_refund_passes_amount(stripe_gateway):
    with patch("stripe.Refund.create", return_value={"id": "re_456"}) as create:
        stripe_gateway.refund_payment("pi_123", amount_cents=1000)

    assert create.call_args.kwargs["amount"] == 1000


def test_membership_checkout_uses_subscription_mode(stripe_gateway):
    with patch("stripe.checkout.Session.create") as create:
        create.return_value = {"id": "cs_sub", "url": "https://checkout.stripe.com/c/pay/cs_sub"}
        stripe_gateway.create_membership_checkout(
            customer_id="cus_1", price_id="price_monthly_test", user_id="user-1", membership_kind="monthly"
        )

    kwargs = create.call_args.kwargs
    assert kwargs["mode"] == "subscription"
    assert kwargs["customer"] == "cus_1"
    assert kwargs["subscription_data"]["metadata"] == {"user_id": "user-1", "membership_kind": "monthly"}


def test_cancel_subscription_at_period_end(stripe_gateway):
    with patch("stripe.Subscription.modify") as modify:
        stripe_gateway.cancel_subscription_at_period_end("sub_1")

    modify.assert_called_once_with("sub_1", cancel_at_period_end=True)


def test_webhook_signature_checks(stripe_gateway):
    with patch("stripe.Webhook.construct_event", return_value={"type": "ping"}):
        assert stripe_gateway.verify_webhook_signature(b"{}", "t=1,v1=abc") is True

    error = stripe.SignatureVerificationError("bad signature", "t=1,v1=abc")
    with patch("stripe.Webhook.construct_event", side_effect=error):
        assert stripe_gateway.verify_webhook_signature(b"{}", "t=1,v1=abc") is False

    with patch("stripe.Webhook.construct_event", side_effect=ValueError("not json")):
        assert stripe_gateway.verify_webhook_signature(b"nope", "t=1,v1=abc") is False


def test_unconfigured_gateway_refuses_calls():
    with patch("app.services.stripe_service.settings") as settings:
        settings.stripe_configured = False
        settings.checkout_expiry_minutes = 30
        settings.stripe_currency = "usd"
        gateway = StripeService()

    with pytest.raises(ServiceException) as exc_info:
        gateway.refund_payment("pi_123")
    assert exc_info.value.code == "STRIPE_NOT_CONFIGURED"


def test_stripe_field_reads_dicts_and_objects():
    class Session:
        payment_status = "paid"

    assert stripe_field({"payment_status": "paid"}, "payment_status") == "paid"
    assert stripe_field(Session(), "payment_status") == "paid"
    assert stripe_field(None, "payment_status", "unknown") == "unknown"
