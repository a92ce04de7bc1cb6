# backend/app/models/time_slot.py
"""
TimeSlot model.

A time slot is one bookable session window on one calendar date. Community
slots are generated ahead of time with a shared capacity; private slots are
created on demand the first time a private session is requested and their
counter records the exclusive hold.
"""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, true
import ulid

from ..core.constants import DEFAULT_SLOT_CAPACITY
from ..database import Base
from .base_enum import create_safe_enum


class SessionKind(str, Enum):
    """Kind of sauna session."""

    COMMUNITY = "community"
    PRIVATE = "private"


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    slot_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_kind = Column(
        create_safe_enum(SessionKind, "session_kind"),
        nullable=False,
        default=SessionKind.COMMUNITY,
    )
    max_capacity = Column(Integer, nullable=False, default=DEFAULT_SLOT_CAPACITY)
    current_bookings = Column(Integer, nullable=False, default=0, server_default="0")
    is_available = Column(Boolean, nullable=False, default=True, server_default=true())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="time_slot")

    __table_args__ = (
        UniqueConstraint("slot_date", "start_time", "slot_kind", name="uq_time_slots_date_start_kind"),
        CheckConstraint("max_capacity >= 1", name="ck_time_slots_capacity_positive"),
        CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= max_capacity",
            name="ck_time_slots_bookings_within_capacity",
        ),
        CheckConstraint("start_time < end_time", name="ck_time_slots_window_order"),
        Index("ix_time_slots_date_kind", "slot_date", "slot_kind"),
    )

    @property
    def spots_remaining(self) -> int:
        return max(0, int(self.max_capacity) - int(self.current_bookings))

    def __repr__(self) -> str:
        return (
            f"<TimeSlot {self.slot_kind} {self.slot_date} {self.start_time}-{self.end_time} "
            f"{self.current_bookings}/{self.max_capacity}>"
        )
