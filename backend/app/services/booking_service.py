# backend/app/services/booking_service.py
"""
Booking Service

The booking ledger. Owns every booking state change:
- Creating pending bookings and starting hosted checkout
- Confirming paid bookings and taking slot capacity atomically
- Failing abandoned or declined checkouts
- Cancelling bookings and releasing capacity
- Reconciling stale pending bookings against the payment provider

Capacity is only taken when a booking is confirmed. All capacity changes are
conditional UPDATE statements issued in the same transaction as the status
change, so two confirmations racing for the last spots can never both win.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    CapacityExceededException,
    ConflictException,
    InvalidStateTransitionException,
    NotFoundException,
    PaymentException,
    ServiceException,
    SlotUnavailableException,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.liability_waiver import LiabilityWaiver
from ..models.time_slot import SessionKind, TimeSlot
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.time_slot_repository import TimeSlotRepository
from ..schemas.booking import BookingCheckoutRequest
from ..tasks.enqueue import enqueue_task
from .availability_service import AvailabilityService
from .base import BaseService
from .email import EmailService
from .pricing_service import PricingService, _validate_party_size
from .slot_catalog_service import SlotCatalogService
from .stripe_service import StripeService, stripe_field

CAPACITY_EXCEEDED_REASON = "capacity_exceeded"
CHECKOUT_EXPIRED_REASON = "checkout_expired"
CHECKOUT_FAILED_REASON = "checkout_failed"
LATE_PAYMENT_REASON = "payment_after_cancellation"
CONFIRMATION_RETRY_TASK = "app.tasks.email.send_booking_confirmation"


class ConfirmOutcome(str, Enum):
    CONFIRMED = "confirmed"
    ALREADY_CONFIRMED = "already_confirmed"
    REJECTED = "rejected"
    IGNORED = "ignored"


@dataclass
class ConfirmResult:
    outcome: ConfirmOutcome
    booking: Booking

    @property
    def confirmed(self) -> bool:
        return self.outcome in (ConfirmOutcome.CONFIRMED, ConfirmOutcome.ALREADY_CONFIRMED)


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: Optional[str] = None


@dataclass
class CheckoutResult:
    booking: Booking
    requires_payment: bool
    checkout_url: Optional[str] = None
    expires_at: Optional[datetime] = None


def _payment_intent_id(value: Any) -> Optional[str]:
    """Stripe returns either an id or an expanded PaymentIntent."""
    if value is None or isinstance(value, str):
        return value
    return stripe_field(value, "id")


class BookingService(BaseService):
    """Booking ledger: pending, confirmed and cancelled bookings."""

    def __init__(
        self,
        db: Session,
        pricing_service: Optional[PricingService] = None,
        availability_service: Optional[AvailabilityService] = None,
        slot_catalog_service: Optional[SlotCatalogService] = None,
        stripe_service: Optional[StripeService] = None,
        email_service: Optional[EmailService] = None,
    ):
        super().__init__(db)
        self.booking_repository: BookingRepository = RepositoryFactory.create_booking_repository(db)
        self.slot_repository: TimeSlotRepository = RepositoryFactory.create_time_slot_repository(db)
        self.waiver_repository = RepositoryFactory.create_base_repository(db, LiabilityWaiver)
        self.pricing_service = pricing_service or PricingService(db)
        self.availability_service = availability_service or AvailabilityService(
            db, slot_repository=self.slot_repository, booking_repository=self.booking_repository
        )
        self.slot_catalog_service = slot_catalog_service or SlotCatalogService(
            db, repository=self.slot_repository
        )
        self.stripe_service = stripe_service or StripeService()
        self.email_service = email_service or EmailService()

    # ------------------------------------------------------------------ #
    # Read side
    # ------------------------------------------------------------------ #

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_booking_with_details(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def get_by_checkout_session(self, checkout_session_id: str) -> Booking:
        booking = self.booking_repository.get_by_checkout_session(checkout_session_id)
        if booking is None:
            raise NotFoundException(
                "Booking not found for checkout session",
                code="BOOKING_NOT_FOUND",
                details={"checkout_session_id": checkout_session_id},
            )
        return booking

    def list_bookings(
        self, status: Optional[BookingStatus] = None, limit: int = 100, offset: int = 0
    ) -> List[Booking]:
        return self.booking_repository.list_bookings(status=status, limit=limit, offset=offset)

    def count_bookings(self, status: Optional[BookingStatus] = None) -> int:
        if status is None:
            return self.booking_repository.count()
        return self.booking_repository.count(status=status)

    def _resolve(self, booking_id: Optional[str], checkout_session_id: Optional[str]) -> Booking:
        if booking_id:
            return self.get_booking(booking_id)
        if checkout_session_id:
            return self.get_by_checkout_session(checkout_session_id)
        raise ValidationException(
            "booking_id or checkout_session_id is required", code="BOOKING_REFERENCE_REQUIRED"
        )

    # ------------------------------------------------------------------ #
    # Checkout orchestration
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("request_booking")
    def request_booking(
        self, request: BookingCheckoutRequest, user: Optional[User] = None
    ) -> CheckoutResult:
        """
        Turn a checkout request into a pending booking and a payment step.

        Zero-priced member bookings are confirmed immediately and need no
        payment. Everything else gets a hosted checkout session.

        Raises:
            ValidationException: missing waiver or invalid party size
            SlotUnavailableException: the window cannot take this party
            PaymentException: the checkout session could not be created
        """
        kind = SessionKind(request.session_kind)
        if not request.waiver_id or self.waiver_repository.get_by_id(request.waiver_id) is None:
            raise ValidationException(
                "A signed liability waiver is required before booking",
                code="WAIVER_REQUIRED",
                details={"waiver_id": request.waiver_id},
            )

        unavailable = {
            "slot_date": request.slot_date.isoformat(),
            "start_time": request.start_time.strftime("%H:%M"),
            "session_kind": kind.value,
            "party_size": request.party_size,
        }
        if not self.availability_service.is_bookable(
            request.slot_date, request.start_time, request.party_size, kind
        ):
            raise SlotUnavailableException(details=unavailable)

        if kind == SessionKind.PRIVATE:
            with self.transaction():
                slot = self.slot_catalog_service.get_or_create_private_slot(
                    request.slot_date, request.start_time
                )
        else:
            slot = self.slot_repository.get_slot(request.slot_date, request.start_time, kind)
            if slot is None:
                raise SlotUnavailableException(details=unavailable)

        user_id = user.id if user is not None else None
        quote = self.pricing_service.quote(kind, request.party_size, user_id=user_id)

        booking = self.create_pending(
            slot,
            CustomerInfo(
                name=request.customer_name,
                email=str(request.customer_email),
                phone=request.customer_phone,
            ),
            kind,
            request.party_size,
            quote.final_price_cents,
            notes=request.notes,
            waiver_id=request.waiver_id,
            user_id=user_id,
        )

        if quote.final_price_cents == 0:
            if not booking.is_confirmed:
                raise SlotUnavailableException(details=unavailable)
            return CheckoutResult(booking=booking, requires_payment=False)

        try:
            checkout = self.stripe_service.create_booking_checkout(booking, slot)
        except ServiceException as e:
            self.logger.error(f"Checkout creation failed for booking {booking.id}: {e.message}")
            self.mark_failed(booking_id=booking.id, reason=CHECKOUT_FAILED_REASON)
            raise PaymentException(
                "Unable to start payment. Please try again.",
                details={"booking_id": booking.id},
            ) from e

        with self.transaction():
            booking = self.booking_repository.update(
                booking.id, checkout_session_id=checkout.session_id
            )

        self.log_operation(
            "request_booking",
            booking_id=booking.id,
            session_kind=kind.value,
            party_size=request.party_size,
            amount_cents=quote.final_price_cents,
        )
        return CheckoutResult(
            booking=booking,
            requires_payment=True,
            checkout_url=checkout.url,
            expires_at=checkout.expires_at,
        )

    # ------------------------------------------------------------------ #
    # State transitions
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("create_pending")
    def create_pending(
        self,
        slot: TimeSlot,
        customer: CustomerInfo,
        session_kind: SessionKind,
        party_size: int,
        price_cents: int,
        notes: Optional[str] = None,
        waiver_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Booking:
        """
        Insert a pending booking. Capacity is not touched.

        A zero-priced booking has no payment step, so it is confirmed
        straight away (and may come back cancelled if the slot filled up).
        """
        kind = SessionKind(session_kind)
        _validate_party_size(party_size)
        if price_cents < 0:
            raise ValidationException("price must not be negative", code="INVALID_PRICE")
        if not customer.name or not customer.email:
            raise ValidationException(
                "customer name and email are required", code="CUSTOMER_REQUIRED"
            )
        if SessionKind(slot.slot_kind) != kind:
            raise ValidationException(
                f"Slot {slot.id} is not a {kind.value} slot",
                code="SESSION_KIND_MISMATCH",
                details={"slot_id": slot.id, "session_kind": kind.value},
            )

        with self.transaction():
            booking = self.booking_repository.create(
                time_slot_id=slot.id,
                user_id=user_id,
                waiver_id=waiver_id,
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                session_kind=kind,
                party_size=party_size,
                total_amount_cents=price_cents,
                notes=notes,
                status=BookingStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
            )

        if price_cents == 0:
            return self.confirm_paid(booking_id=booking.id).booking
        return booking

    @BaseService.measure_operation("confirm_paid")
    def confirm_paid(
        self,
        booking_id: Optional[str] = None,
        checkout_session_id: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
    ) -> ConfirmResult:
        """
        Confirm a booking whose payment has cleared and take its capacity.

        Safe to call repeatedly for the same booking: only the call that moves
        it out of pending does any work. If the slot can no longer take the
        party, the booking is cancelled and the payment refunded.
        """
        booking = self._resolve(booking_id, checkout_session_id)
        status = BookingStatus(booking.status)
        if status == BookingStatus.CONFIRMED:
            return ConfirmResult(ConfirmOutcome.ALREADY_CONFIRMED, booking)
        if status == BookingStatus.CANCELLED:
            return self._handle_late_payment(booking, payment_intent_id)

        payment_intent_id = payment_intent_id or booking.payment_intent_id
        values: Dict[str, Any] = {
            "status": BookingStatus.CONFIRMED,
            "payment_status": PaymentStatus.PAID,
            "confirmed_at": datetime.now(timezone.utc),
        }
        if payment_intent_id:
            values["payment_intent_id"] = payment_intent_id

        try:
            with self.transaction():
                moved = self.booking_repository.transition(
                    booking.id, BookingStatus.PENDING, values
                )
                if moved:
                    self._reserve(booking)
        except CapacityExceededException as e:
            self.logger.warning(f"Rejecting booking {booking.id}: {e.message}")
            return self._reject(booking, payment_intent_id)

        booking = self.get_booking(booking.id)
        if not moved:
            if booking.is_confirmed:
                return ConfirmResult(ConfirmOutcome.ALREADY_CONFIRMED, booking)
            return self._handle_late_payment(booking, payment_intent_id)

        prometheus_metrics.record_booking_outcome(booking.session_kind, "confirmed")
        self.log_operation(
            "confirm_paid",
            booking_id=booking.id,
            time_slot_id=booking.time_slot_id,
            party_size=booking.party_size,
        )
        self._send_confirmation(booking)
        return ConfirmResult(ConfirmOutcome.CONFIRMED, booking)

    @BaseService.measure_operation("mark_failed")
    def mark_failed(
        self,
        booking_id: Optional[str] = None,
        checkout_session_id: Optional[str] = None,
        reason: str = "payment_failed",
    ) -> bool:
        """
        Cancel a pending booking whose payment did not complete.

        Returns:
            True if the booking was pending and is now cancelled
        """
        booking = self._resolve(booking_id, checkout_session_id)
        with self.transaction():
            moved = self.booking_repository.transition(
                booking.id,
                BookingStatus.PENDING,
                {
                    "status": BookingStatus.CANCELLED,
                    "payment_status": PaymentStatus.FAILED,
                    "cancellation_reason": reason,
                    "cancelled_at": datetime.now(timezone.utc),
                },
            )

        if moved:
            outcome = "expired" if reason == CHECKOUT_EXPIRED_REASON else "failed"
            prometheus_metrics.record_booking_outcome(booking.session_kind, outcome)
            self.log_operation("mark_failed", booking_id=booking.id, reason=reason)
        return moved

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, booking_id: str, reason: Optional[str] = None, refund: bool = False) -> Booking:
        """
        Cancel a booking.

        Confirmed bookings give their places back to the slot (never below
        zero); a private booking also reopens the community session at the
        same time. Pending bookings are cancelled without touching capacity.

        Raises:
            NotFoundException: unknown booking
            InvalidStateTransitionException: booking already cancelled
        """
        booking = self.get_booking(booking_id)
        current = BookingStatus(booking.status)
        if not booking.can_transition_to(BookingStatus.CANCELLED):
            raise InvalidStateTransitionException(
                booking.id, current.value, BookingStatus.CANCELLED.value
            )

        was_confirmed = current == BookingStatus.CONFIRMED
        payment_intent_id = booking.payment_intent_id
        amount_cents = booking.total_amount_cents

        with self.transaction():
            moved = self.booking_repository.transition(
                booking.id,
                current,
                {
                    "status": BookingStatus.CANCELLED,
                    "cancellation_reason": reason,
                    "cancelled_at": datetime.now(timezone.utc),
                },
            )
            if not moved:
                raise ConflictException(
                    "Booking changed while it was being cancelled",
                    code="BOOKING_STATE_CHANGED",
                    details={"booking_id": booking.id},
                )
            if was_confirmed:
                self._release(booking)

        prometheus_metrics.record_booking_outcome(booking.session_kind, "cancelled")
        self.log_operation("cancel_booking", booking_id=booking.id, previous_status=current.value)

        if refund:
            if was_confirmed and payment_intent_id and amount_cents > 0:
                self._refund(booking.id, payment_intent_id)
            else:
                self.logger.info(f"No refund issued for booking {booking.id}: nothing was charged")

        return self.get_booking(booking.id)

    # ------------------------------------------------------------------ #
    # Reconciliation
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("expire_stale_pending")
    def expire_stale_pending(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Settle pending bookings whose checkout window has passed.

        Paid sessions whose webhook never arrived are confirmed; everything
        else is marked failed. Bookings whose session cannot be looked up are
        left for the next run.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(
            minutes=settings.checkout_expiry_minutes + settings.pending_sweep_grace_minutes
        )
        stale = self.booking_repository.get_stale_pending(cutoff)
        counts = {"examined": len(stale), "confirmed": 0, "rejected": 0, "expired": 0, "skipped": 0}

        for booking in stale:
            if not booking.checkout_session_id:
                if self.mark_failed(booking_id=booking.id, reason=CHECKOUT_EXPIRED_REASON):
                    counts["expired"] += 1
                continue

            try:
                session = self.stripe_service.retrieve_checkout_session(booking.checkout_session_id)
            except ServiceException as e:
                self.logger.warning(
                    f"Could not look up checkout {booking.checkout_session_id} "
                    f"for booking {booking.id}: {e.message}"
                )
                counts["skipped"] += 1
                continue

            if stripe_field(session, "payment_status") == "paid":
                result = self.confirm_paid(
                    booking_id=booking.id,
                    payment_intent_id=_payment_intent_id(stripe_field(session, "payment_intent")),
                )
                if result.confirmed:
                    counts["confirmed"] += 1
                else:
                    counts["rejected"] += 1
            elif self.mark_failed(booking_id=booking.id, reason=CHECKOUT_EXPIRED_REASON):
                counts["expired"] += 1

        if stale:
            self.log_operation("expire_stale_pending", cutoff=cutoff.isoformat(), **counts)
        return counts

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _reserve(self, booking: Booking) -> None:
        """Take capacity for ``booking``. Must run inside the confirming transaction."""
        slot = booking.time_slot
        party_size = booking.party_size

        if SessionKind(booking.session_kind) == SessionKind.COMMUNITY:
            if not self.slot_repository.reserve_capacity(slot.id, party_size):
                raise CapacityExceededException(slot.id, party_size)
            return

        community = self.slot_repository.get_slot(
            slot.slot_date, slot.start_time, SessionKind.COMMUNITY
        )
        if community is not None and not self.slot_repository.close_if_empty(community.id):
            raise CapacityExceededException(community.id, party_size)
        if not self.slot_repository.claim_exclusive(slot.id, party_size):
            raise CapacityExceededException(slot.id, party_size)

    def _release(self, booking: Booking) -> None:
        slot = booking.time_slot
        if SessionKind(booking.session_kind) == SessionKind.COMMUNITY:
            self.slot_repository.release_capacity(slot.id, booking.party_size)
            return

        self.slot_repository.release_exclusive(slot.id)
        community = self.slot_repository.get_slot(
            slot.slot_date, slot.start_time, SessionKind.COMMUNITY
        )
        if community is not None:
            self.slot_repository.reopen(community.id)

    def _reject(self, booking: Booking, payment_intent_id: Optional[str]) -> ConfirmResult:
        """Cancel a booking that lost the race for capacity and refund it."""
        charged = bool(payment_intent_id) and booking.total_amount_cents > 0
        values: Dict[str, Any] = {
            "status": BookingStatus.CANCELLED,
            "payment_status": PaymentStatus.PAID if charged else PaymentStatus.FAILED,
            "cancellation_reason": CAPACITY_EXCEEDED_REASON,
            "cancelled_at": datetime.now(timezone.utc),
        }
        if payment_intent_id:
            values["payment_intent_id"] = payment_intent_id

        with self.transaction():
            self.booking_repository.transition(booking.id, BookingStatus.PENDING, values)

        prometheus_metrics.record_booking_outcome(booking.session_kind, "rejected_capacity")
        if charged:
            self._refund(booking.id, payment_intent_id)
        return ConfirmResult(ConfirmOutcome.REJECTED, self.get_booking(booking.id))

    def _handle_late_payment(
        self, booking: Booking, payment_intent_id: Optional[str]
    ) -> ConfirmResult:
        """Refund a payment that arrived for a booking already cancelled."""
        settled = PaymentStatus(booking.payment_status) in (PaymentStatus.PAID, PaymentStatus.REFUNDED)
        if settled or not payment_intent_id or booking.total_amount_cents == 0:
            return ConfirmResult(ConfirmOutcome.IGNORED, booking)

        self.logger.warning(
            f"Payment {payment_intent_id} arrived for cancelled booking {booking.id}; refunding"
        )
        with self.transaction():
            self.booking_repository.update(
                booking.id,
                payment_status=PaymentStatus.PAID,
                payment_intent_id=payment_intent_id,
                cancellation_reason=booking.cancellation_reason or LATE_PAYMENT_REASON,
            )
        self._refund(booking.id, payment_intent_id)
        return ConfirmResult(ConfirmOutcome.REJECTED, self.get_booking(booking.id))

    def _refund(self, booking_id: str, payment_intent_id: str) -> bool:
        """
        Refund the payment outside any open transaction.

        A failed refund leaves payment_status at paid for manual follow-up.
        """
        try:
            self.stripe_service.refund_payment(payment_intent_id)
        except ServiceException as e:
            self.logger.error(
                f"Refund failed for booking {booking_id} ({payment_intent_id}); "
                f"manual follow-up required: {e.message}"
            )
            return False

        with self.transaction():
            self.booking_repository.update(booking_id, payment_status=PaymentStatus.REFUNDED)
        return True

    def _send_confirmation(self, booking: Booking) -> None:
        if self.email_service.send_booking_confirmation(booking):
            return
        try:
            enqueue_task(CONFIRMATION_RETRY_TASK, args=(booking.id,), countdown=60)
        except Exception as e:
            self.logger.error(
                f"Could not schedule confirmation email retry for booking {booking.id}: {str(e)}"
            )
