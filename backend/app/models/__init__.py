"""
Database models for the sauna booking platform.

This module exports all SQLAlchemy models used in the application so that
``Base.metadata`` is fully populated once ``app.models`` is imported:
- Time slots (community and private session windows)
- Bookings and their payment state
- Users, memberships and membership purchases
- Liability waivers
"""

from .booking import Booking, BookingStatus, PaymentStatus
from .liability_waiver import LiabilityWaiver
from .membership import (
    Membership,
    MembershipKind,
    MembershipPurchase,
    MembershipStatus,
    PurchaseStatus,
)
from .time_slot import SessionKind, TimeSlot
from .user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "LiabilityWaiver",
    "Membership",
    "MembershipKind",
    "MembershipPurchase",
    "MembershipStatus",
    "PaymentStatus",
    "PurchaseStatus",
    "SessionKind",
    "TimeSlot",
    "User",
]
