from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ServiceException
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.services.booking_service import CHECKOUT_EXPIRED_REASON

NOW = datetime.now(timezone.utc)
LONG_AGO = NOW - timedelta(hours=2)


@pytest.fixture
def sessions(stripe_service):
    """Checkout sessions as the provider would report them, keyed by id."""
    known = {}

    def retrieve(session_id):
        if session_id not in known:
            raise ServiceException(f"No such checkout session: {session_id}")
        return known[session_id]

    stripe_service.retrieve_checkout_session.side_effect = retrieve
    return known


def _reload(db, booking_id):
    db.expire_all()
    return db.get(Booking, booking_id)


def test_unpaid_session_is_expired(db, booking_service, sessions, make_slot, make_booking):
    booking = make_booking(make_slot(), checkout_session_id="cs_open", created_at=LONG_AGO)
    sessions["cs_open"] = {"id": "cs_open", "payment_status": "unpaid", "payment_intent": None}

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["examined"] == 1
    assert counts["expired"] == 1
    booking = _reload(db, booking.id)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_status == PaymentStatus.FAILED
    assert booking.cancellation_reason == CHECKOUT_EXPIRED_REASON


def test_paid_session_with_lost_webhook_is_confirmed(db, booking_service, sessions, make_slot, make_booking):
    slot = make_slot()
    booking = make_booking(slot, party_size=3, checkout_session_id="cs_paid", created_at=LONG_AGO)
    sessions["cs_paid"] = {"id": "cs_paid", "payment_status": "paid", "payment_intent": "pi_paid"}

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["confirmed"] == 1
    booking = _reload(db, booking.id)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_intent_id == "pi_paid"
    assert booking.time_slot.current_bookings == 3


def test_expanded_payment_intent_is_read(db, booking_service, sessions, make_slot, make_booking):
    booking = make_booking(make_slot(), checkout_session_id="cs_expanded", created_at=LONG_AGO)
    sessions["cs_expanded"] = {"payment_status": "paid", "payment_intent": {"id": "pi_expanded"}}

    booking_service.expire_stale_pending(now=NOW)

    assert _reload(db, booking.id).payment_intent_id == "pi_expanded"


def test_paid_session_for_full_slot_is_rejected(booking_service, stripe_service, sessions, make_slot, make_booking):
    slot = make_slot(current_bookings=8)
    make_booking(slot, party_size=1, checkout_session_id="cs_full", created_at=LONG_AGO)
    sessions["cs_full"] = {"payment_status": "paid", "payment_intent": "pi_full"}

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["rejected"] == 1
    stripe_service.refund_payment.assert_called_once_with("pi_full")


def test_booking_without_checkout_session_is_expired(db, booking_service, sessions, make_slot, make_booking):
    booking = make_booking(make_slot(), created_at=LONG_AGO)

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["expired"] == 1
    assert _reload(db, booking.id).status == BookingStatus.CANCELLED


def test_lookup_failure_is_left_for_next_run(db, booking_service, sessions, make_slot, make_booking):
    booking = make_booking(make_slot(), checkout_session_id="cs_unknown", created_at=LONG_AGO)

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["skipped"] == 1
    assert _reload(db, booking.id).status == BookingStatus.PENDING


def test_recent_pending_bookings_untouched(db, booking_service, stripe_service, make_slot, make_booking):
    booking = make_booking(make_slot(), checkout_session_id="cs_recent", created_at=NOW - timedelta(minutes=10))

    counts = booking_service.expire_stale_pending(now=NOW)

    assert counts["examined"] == 0
    stripe_service.retrieve_checkout_session.assert_not_called()
    assert _reload(db, booking.id).status == BookingStatus.PENDING


def test_confirmed_bookings_are_not_swept(booking_service, make_slot, make_booking):
    make_booking(
        make_slot(),
        status=BookingStatus.CONFIRMED,
        payment_status=PaymentStatus.PAID,
        created_at=LONG_AGO,
    )

    assert booking_service.expire_stale_pending(now=NOW)["examined"] == 0
