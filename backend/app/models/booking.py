# backend/app/models/booking.py
"""
Booking model.

A booking is a customer's claim on a time slot. It starts pending while the
customer pays, becomes confirmed once payment clears (or immediately for a
zero-priced member booking), and may later be cancelled. Capacity on the
slot only moves on confirmation and on cancellation of a confirmed booking.
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum
from .time_slot import SessionKind


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting payment
    CONFIRMED = "confirmed"  # Holds capacity
    CANCELLED = "cancelled"  # Terminal


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


# Allowed edges of the booking state machine.
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}


class Booking(Base):
    """
    A customer's booking against one time slot.

    Customer contact details are stored on the booking so guest checkouts
    (no account) work the same way as signed-in ones.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    time_slot_id = Column(String(26), ForeignKey("time_slots.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    waiver_id = Column(String(26), ForeignKey("liability_waivers.id"), nullable=True)

    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(320), nullable=False, index=True)
    customer_phone = Column(String(40), nullable=True)

    session_kind = Column(create_safe_enum(SessionKind, "session_kind"), nullable=False)
    party_size = Column(Integer, nullable=False, default=1)
    total_amount_cents = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    status = Column(
        create_safe_enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    payment_status = Column(
        create_safe_enum(PaymentStatus, "booking_payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # Stripe references
    checkout_session_id = Column(String(255), nullable=True, unique=True)
    payment_intent_id = Column(String(255), nullable=True, comment="Stripe payment intent")

    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    time_slot = relationship("TimeSlot", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
    waiver = relationship("LiabilityWaiver")

    __table_args__ = (
        CheckConstraint("party_size >= 1 AND party_size <= 8", name="ck_bookings_party_size"),
        CheckConstraint("total_amount_cents >= 0", name="ck_bookings_amount_non_negative"),
        Index("ix_bookings_status_created", "status", "created_at"),
    )

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in BOOKING_TRANSITIONS.get(BookingStatus(self.status), set())

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def __repr__(self) -> str:
        return f"<Booking {self.id} {self.status} party={self.party_size} slot={self.time_slot_id}>"
