from datetime import time
from unittest.mock import patch

import pytest

from app.core.exceptions import (
    ConflictException,
    InvalidStateTransitionException,
    NotFoundException,
    PaymentException,
    ServiceException,
    SlotUnavailableException,
    ValidationException,
)
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.time_slot import SessionKind, TimeSlot
from app.schemas.booking import BookingCheckoutRequest
from app.services.booking_service import (
    CAPACITY_EXCEEDED_REASON,
    CHECKOUT_FAILED_REASON,
    CONFIRMATION_RETRY_TASK,
    ConfirmOutcome,
    CustomerInfo,
)

GUEST = CustomerInfo(name="Guest Bather", email="guest@example.com", phone="208-555-0199")


def _checkout_request(slot_date, waiver_id, **overrides):
    values = {
        "session_kind": SessionKind.COMMUNITY,
        "slot_date": slot_date,
        "start_time": time(19, 0),
        "party_size": 2,
        "customer_name": "Guest Bather",
        "customer_email": "guest@example.com",
        "customer_phone": "208-555-0199",
        "waiver_id": waiver_id,
    }
    values.update(overrides)
    return BookingCheckoutRequest(**values)


def _slot_counter(db, slot_id):
    db.expire_all()
    return db.get(TimeSlot, slot_id).current_bookings


class TestCreatePending:
    def test_inserts_pending_without_touching_capacity(self, db, booking_service, make_slot):
        slot = make_slot()

        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 3, 7500, notes="first visit")

        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.total_amount_cents == 7500
        assert booking.notes == "first visit"
        assert _slot_counter(db, slot.id) == 0

    def test_zero_price_confirms_immediately(self, db, booking_service, make_slot):
        slot = make_slot()

        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 2, 0)

        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_status == PaymentStatus.PAID
        assert _slot_counter(db, slot.id) == 2

    def test_session_kind_must_match_slot(self, booking_service, make_slot):
        slot = make_slot()

        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_pending(slot, GUEST, SessionKind.PRIVATE, 2, 20000)
        assert exc_info.value.code == "SESSION_KIND_MISMATCH"

    @pytest.mark.parametrize("party_size", [0, 9])
    def test_party_size_validated(self, booking_service, make_slot, party_size):
        with pytest.raises(ValidationException):
            booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, party_size, 2500)

    def test_negative_price_rejected(self, booking_service, make_slot):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 1, -1)
        assert exc_info.value.code == "INVALID_PRICE"

    def test_customer_required(self, booking_service, make_slot):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_pending(
                make_slot(), CustomerInfo(name="", email="guest@example.com"), SessionKind.COMMUNITY, 1, 2500
            )
        assert exc_info.value.code == "CUSTOMER_REQUIRED"


class TestConfirmPaid:
    def test_confirms_and_takes_capacity(self, db, booking_service, email_service, make_slot):
        slot = make_slot(current_bookings=2)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 3, 7500)

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_123")

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert result.booking.status == BookingStatus.CONFIRMED
        assert result.booking.payment_status == PaymentStatus.PAID
        assert result.booking.payment_intent_id == "pi_123"
        assert result.booking.confirmed_at is not None
        assert _slot_counter(db, slot.id) == 5
        email_service.send_booking_confirmation.assert_called_once()

    def test_lookup_by_checkout_session(self, booking_service, make_slot, make_booking):
        booking = make_booking(make_slot(), checkout_session_id="cs_test_lookup")

        result = booking_service.confirm_paid(checkout_session_id="cs_test_lookup")

        assert result.confirmed
        assert result.booking.id == booking.id

    def test_redelivery_is_idempotent(self, db, booking_service, email_service, make_slot):
        slot = make_slot()
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 3, 7500)

        booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_123")
        again = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_123")

        assert again.outcome == ConfirmOutcome.ALREADY_CONFIRMED
        assert again.confirmed
        assert _slot_counter(db, slot.id) == 3
        assert email_service.send_booking_confirmation.call_count == 1

    def test_over_capacity_rejected_and_refunded(self, db, booking_service, stripe_service, make_slot):
        slot = make_slot(current_bookings=6)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 3, 7500)

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_late")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert result.booking.status == BookingStatus.CANCELLED
        assert result.booking.cancellation_reason == CAPACITY_EXCEEDED_REASON
        assert result.booking.payment_status == PaymentStatus.REFUNDED
        stripe_service.refund_payment.assert_called_once_with("pi_late")
        assert _slot_counter(db, slot.id) == 6

    def test_failed_refund_leaves_payment_marked_paid(self, booking_service, stripe_service, make_slot):
        stripe_service.refund_payment.side_effect = ServiceException("Stripe unavailable")
        slot = make_slot(current_bookings=8)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 1, 2500)

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_stuck")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert result.booking.status == BookingStatus.CANCELLED
        assert result.booking.payment_status == PaymentStatus.PAID

    def test_closed_slot_rejects(self, booking_service, make_slot):
        slot = make_slot(is_available=False)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 1, 2500)

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_closed")

        assert result.outcome == ConfirmOutcome.REJECTED

    def test_payment_for_failed_booking_is_refunded(self, db, booking_service, stripe_service, make_slot):
        slot = make_slot()
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 2, 5000)
        booking_service.mark_failed(booking_id=booking.id, reason="checkout_expired")

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_after")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert result.booking.status == BookingStatus.CANCELLED
        assert result.booking.payment_status == PaymentStatus.REFUNDED
        stripe_service.refund_payment.assert_called_once_with("pi_after")
        assert _slot_counter(db, slot.id) == 0

    def test_already_refunded_booking_ignored(self, booking_service, stripe_service, make_slot, make_booking):
        booking = make_booking(
            make_slot(), status=BookingStatus.CANCELLED, payment_status=PaymentStatus.REFUNDED
        )

        result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_again")

        assert result.outcome == ConfirmOutcome.IGNORED
        stripe_service.refund_payment.assert_not_called()

    def test_email_failure_schedules_retry(self, booking_service, email_service, make_slot):
        email_service.send_booking_confirmation.return_value = False
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 1, 2500)

        with patch("app.services.booking_service.enqueue_task") as enqueue:
            result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_1")

        assert result.booking.status == BookingStatus.CONFIRMED
        enqueue.assert_called_once_with(CONFIRMATION_RETRY_TASK, args=(booking.id,), countdown=60)

    def test_broker_outage_does_not_undo_confirmation(self, booking_service, email_service, make_slot):
        email_service.send_booking_confirmation.return_value = False
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 1, 2500)

        with patch("app.services.booking_service.enqueue_task", side_effect=ConnectionError("redis down")):
            result = booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_1")

        assert result.outcome == ConfirmOutcome.CONFIRMED

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.confirm_paid(booking_id="01UNKNOWNBOOKING0000000000")

    def test_reference_required(self, booking_service):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.confirm_paid()
        assert exc_info.value.code == "BOOKING_REFERENCE_REQUIRED"


class TestMarkFailed:
    def test_pending_becomes_cancelled(self, db, booking_service, make_slot):
        slot = make_slot(current_bookings=4)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 2, 5000)

        assert booking_service.mark_failed(booking_id=booking.id) is True

        booking = booking_service.get_booking(booking.id)
        assert booking.status == BookingStatus.CANCELLED
        assert booking.payment_status == PaymentStatus.FAILED
        assert booking.cancellation_reason == "payment_failed"
        assert _slot_counter(db, slot.id) == 4

    def test_confirmed_booking_untouched(self, booking_service, make_slot):
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 2, 0)

        assert booking_service.mark_failed(booking_id=booking.id) is False
        assert booking_service.get_booking(booking.id).status == BookingStatus.CONFIRMED


class TestCancel:
    def test_confirmed_booking_releases_capacity(self, db, booking_service, make_slot):
        slot = make_slot(current_bookings=1)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 3, 7500)
        booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_1")

        cancelled = booking_service.cancel(booking.id, reason="guest request")

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancellation_reason == "guest request"
        assert cancelled.payment_status == PaymentStatus.PAID
        assert _slot_counter(db, slot.id) == 1

    def test_counter_never_goes_below_zero(self, db, booking_service, make_slot, make_booking):
        slot = make_slot(current_bookings=1)
        booking = make_booking(slot, party_size=3, status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)

        booking_service.cancel(booking.id)

        assert _slot_counter(db, slot.id) == 0

    def test_pending_cancel_leaves_capacity(self, db, booking_service, make_slot):
        slot = make_slot(current_bookings=2)
        booking = booking_service.create_pending(slot, GUEST, SessionKind.COMMUNITY, 2, 5000)

        cancelled = booking_service.cancel(booking.id)

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.payment_status == PaymentStatus.PENDING
        assert _slot_counter(db, slot.id) == 2

    def test_refund_on_request(self, booking_service, stripe_service, make_slot):
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 2, 5000)
        booking_service.confirm_paid(booking_id=booking.id, payment_intent_id="pi_refund")

        cancelled = booking_service.cancel(booking.id, reason="storm closure", refund=True)

        stripe_service.refund_payment.assert_called_once_with("pi_refund")
        assert cancelled.payment_status == PaymentStatus.REFUNDED

    def test_no_refund_for_free_booking(self, booking_service, stripe_service, make_slot):
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 2, 0)

        booking_service.cancel(booking.id, refund=True)

        stripe_service.refund_payment.assert_not_called()

    def test_cancelling_twice_is_rejected(self, booking_service, make_slot):
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 2, 5000)
        booking_service.cancel(booking.id)

        with pytest.raises(InvalidStateTransitionException):
            booking_service.cancel(booking.id)

    def test_lost_race_is_a_conflict(self, booking_service, make_slot):
        booking = booking_service.create_pending(make_slot(), GUEST, SessionKind.COMMUNITY, 2, 5000)

        with patch.object(booking_service.booking_repository, "transition", return_value=False):
            with pytest.raises(ConflictException) as exc_info:
                booking_service.cancel(booking.id)
        assert exc_info.value.code == "BOOKING_STATE_CHANGED"


class TestRequestBooking:
    def test_paid_booking_gets_hosted_checkout(self, booking_service, stripe_service, make_slot, waiver, slot_date):
        make_slot()

        result = booking_service.request_booking(_checkout_request(slot_date, waiver.id, party_size=3))

        assert result.requires_payment is True
        assert result.checkout_url.startswith("https://checkout.stripe.test/")
        assert result.booking.status == BookingStatus.PENDING
        assert result.booking.total_amount_cents == 7500
        assert result.booking.checkout_session_id == f"cs_test_{result.booking.id}"
        assert result.booking.waiver_id == waiver.id
        stripe_service.create_booking_checkout.assert_called_once()

    def test_waiver_required(self, booking_service, make_slot, slot_date):
        make_slot()

        with pytest.raises(ValidationException) as exc_info:
            booking_service.request_booking(_checkout_request(slot_date, "01NOSUCHWAIVER000000000000"))
        assert exc_info.value.code == "WAIVER_REQUIRED"

    def test_unavailable_slot(self, booking_service, make_slot, waiver, slot_date):
        make_slot(current_bookings=7)

        with pytest.raises(SlotUnavailableException):
            booking_service.request_booking(_checkout_request(slot_date, waiver.id, party_size=2))

    def test_missing_slot(self, booking_service, waiver, slot_date):
        with pytest.raises(SlotUnavailableException):
            booking_service.request_booking(_checkout_request(slot_date, waiver.id))

    def test_checkout_failure_marks_booking_failed(self, db, booking_service, stripe_service, make_slot, waiver, slot_date):
        make_slot()
        stripe_service.create_booking_checkout.side_effect = ServiceException("card network down")

        with pytest.raises(PaymentException) as exc_info:
            booking_service.request_booking(_checkout_request(slot_date, waiver.id))

        booking = db.query(Booking).one()
        assert exc_info.value.details["booking_id"] == booking.id
        assert booking.status == BookingStatus.CANCELLED
        assert booking.payment_status == PaymentStatus.FAILED
        assert booking.cancellation_reason == CHECKOUT_FAILED_REASON

    def test_private_request_creates_private_slot(self, db, booking_service, waiver, slot_date):
        result = booking_service.request_booking(
            _checkout_request(slot_date, waiver.id, session_kind=SessionKind.PRIVATE, start_time=time(10, 0), party_size=6)
        )

        assert result.requires_payment is True
        assert result.booking.total_amount_cents == 20000
        slot = db.get(TimeSlot, result.booking.time_slot_id)
        assert slot.slot_kind == SessionKind.PRIVATE
        assert slot.current_bookings == 0

    def test_member_links_user(self, booking_service, make_member, make_slot, waiver, slot_date):
        member = make_member()
        make_slot()

        result = booking_service.request_booking(_checkout_request(slot_date, waiver.id), user=member)

        assert result.booking.user_id == member.id
        assert result.requires_payment is False


class TestReadSide:
    def test_list_and_count_by_status(self, booking_service, make_slot, make_booking):
        slot = make_slot()
        make_booking(slot, status=BookingStatus.PENDING)
        make_booking(slot, status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)
        make_booking(slot, status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)

        confirmed = booking_service.list_bookings(status=BookingStatus.CONFIRMED)

        assert len(confirmed) == 2
        assert booking_service.count_bookings(BookingStatus.CONFIRMED) == 2
        assert booking_service.count_bookings() == 3
        assert len(booking_service.list_bookings(limit=1, offset=1)) == 1

    def test_unknown_checkout_session(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.get_by_checkout_session("cs_missing")
