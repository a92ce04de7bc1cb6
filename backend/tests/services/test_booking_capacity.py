"""
Capacity is only taken on confirmation, so several pending bookings can race
for the same places. These tests drive the races through the ledger and check
that the slot counter never overshoots and that losers are refunded.
"""

from datetime import time

from app.models.booking import BookingStatus, PaymentStatus
from app.models.time_slot import SessionKind, TimeSlot
from app.services.booking_service import CAPACITY_EXCEEDED_REASON, ConfirmOutcome, CustomerInfo

ALICE = CustomerInfo(name="Alice", email="alice@example.com")
BERIT = CustomerInfo(name="Berit", email="berit@example.com")


def _slot(db, slot_id):
    db.expire_all()
    return db.get(TimeSlot, slot_id)


class TestCommunityRace:
    def test_last_places_go_to_first_confirmation(self, db, booking_service, stripe_service, make_slot):
        slot = make_slot(max_capacity=8)
        first = booking_service.create_pending(slot, ALICE, SessionKind.COMMUNITY, 5, 12500)
        second = booking_service.create_pending(slot, BERIT, SessionKind.COMMUNITY, 5, 12500)

        won = booking_service.confirm_paid(booking_id=first.id, payment_intent_id="pi_first")
        lost = booking_service.confirm_paid(booking_id=second.id, payment_intent_id="pi_second")

        assert won.outcome == ConfirmOutcome.CONFIRMED
        assert lost.outcome == ConfirmOutcome.REJECTED
        assert lost.booking.cancellation_reason == CAPACITY_EXCEEDED_REASON
        assert lost.booking.payment_status == PaymentStatus.REFUNDED
        stripe_service.refund_payment.assert_called_once_with("pi_second")
        assert _slot(db, slot.id).current_bookings == 5

    def test_exact_fill_then_closed_to_more(self, db, booking_service, make_slot):
        slot = make_slot(max_capacity=8)
        parties = [
            booking_service.create_pending(slot, ALICE, SessionKind.COMMUNITY, size, 2500 * size)
            for size in (3, 5, 1)
        ]

        outcomes = [
            booking_service.confirm_paid(booking_id=b.id, payment_intent_id=f"pi_{i}").outcome
            for i, b in enumerate(parties)
        ]

        assert outcomes == [ConfirmOutcome.CONFIRMED, ConfirmOutcome.CONFIRMED, ConfirmOutcome.REJECTED]
        assert _slot(db, slot.id).current_bookings == 8

    def test_cancel_frees_places_for_the_next_party(self, db, booking_service, make_slot):
        slot = make_slot(max_capacity=8)
        first = booking_service.create_pending(slot, ALICE, SessionKind.COMMUNITY, 6, 15000)
        booking_service.confirm_paid(booking_id=first.id, payment_intent_id="pi_first")
        second = booking_service.create_pending(slot, BERIT, SessionKind.COMMUNITY, 4, 10000)

        booking_service.cancel(first.id, reason="change of plans")
        result = booking_service.confirm_paid(booking_id=second.id, payment_intent_id="pi_second")

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert _slot(db, slot.id).current_bookings == 4


class TestPrivateExclusivity:
    def test_second_private_booking_for_same_window_loses(self, db, booking_service, make_slot):
        private = make_slot(start=time(10, 0), kind=SessionKind.PRIVATE)
        first = booking_service.create_pending(private, ALICE, SessionKind.PRIVATE, 4, 20000)
        second = booking_service.create_pending(private, BERIT, SessionKind.PRIVATE, 2, 20000)

        won = booking_service.confirm_paid(booking_id=first.id, payment_intent_id="pi_first")
        lost = booking_service.confirm_paid(booking_id=second.id, payment_intent_id="pi_second")

        assert won.outcome == ConfirmOutcome.CONFIRMED
        assert lost.outcome == ConfirmOutcome.REJECTED
        slot = _slot(db, private.id)
        assert slot.current_bookings == 4
        assert slot.is_available is False

    def test_private_blocked_by_community_party(self, db, booking_service, make_slot):
        community = make_slot(start=time(19, 0))
        guest = booking_service.create_pending(community, ALICE, SessionKind.COMMUNITY, 2, 5000)
        booking_service.confirm_paid(booking_id=guest.id, payment_intent_id="pi_guest")
        private = make_slot(start=time(19, 0), kind=SessionKind.PRIVATE)
        exclusive = booking_service.create_pending(private, BERIT, SessionKind.PRIVATE, 6, 20000)

        result = booking_service.confirm_paid(booking_id=exclusive.id, payment_intent_id="pi_private")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert _slot(db, community.id).is_available is True
        assert _slot(db, community.id).current_bookings == 2
        assert _slot(db, private.id).current_bookings == 0

    def test_private_booking_closes_and_reopens_community_session(self, db, booking_service, make_slot):
        community = make_slot(start=time(19, 0))
        private = make_slot(start=time(19, 0), kind=SessionKind.PRIVATE)
        exclusive = booking_service.create_pending(private, ALICE, SessionKind.PRIVATE, 6, 20000)
        walk_in = booking_service.create_pending(community, BERIT, SessionKind.COMMUNITY, 1, 2500)

        booking_service.confirm_paid(booking_id=exclusive.id, payment_intent_id="pi_private")

        assert _slot(db, community.id).is_available is False
        blocked = booking_service.confirm_paid(booking_id=walk_in.id, payment_intent_id="pi_walk_in")
        assert blocked.outcome == ConfirmOutcome.REJECTED

        booking_service.cancel(exclusive.id, reason="weather")

        assert _slot(db, community.id).is_available is True
        reopened = _slot(db, private.id)
        assert reopened.current_bookings == 0
        assert reopened.is_available is True

    def test_rejected_private_booking_leaves_no_partial_changes(self, db, booking_service, make_slot):
        community = make_slot(start=time(12, 0))
        private = make_slot(start=time(12, 0), kind=SessionKind.PRIVATE, is_available=False, current_bookings=3)
        pending = booking_service.create_pending(private, ALICE, SessionKind.PRIVATE, 2, 20000)

        result = booking_service.confirm_paid(booking_id=pending.id, payment_intent_id="pi_private")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert result.booking.status == BookingStatus.CANCELLED
        assert _slot(db, community.id).is_available is True

    def test_party_larger_than_private_slot_is_refunded(self, db, booking_service, stripe_service, make_slot):
        community = make_slot(start=time(15, 0))
        private = make_slot(start=time(15, 0), kind=SessionKind.PRIVATE, max_capacity=2)
        pending = booking_service.create_pending(private, ALICE, SessionKind.PRIVATE, 4, 20000)

        result = booking_service.confirm_paid(booking_id=pending.id, payment_intent_id="pi_too_big")

        assert result.outcome == ConfirmOutcome.REJECTED
        assert result.booking.cancellation_reason == CAPACITY_EXCEEDED_REASON
        stripe_service.refund_payment.assert_called_once_with("pi_too_big")
        assert _slot(db, private.id).current_bookings == 0
        assert _slot(db, community.id).is_available is True
