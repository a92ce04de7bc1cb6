# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Generic CRUD plus insert-or-ignore and conditional updates
- RepositoryFactory: Factory for creating repository instances
- TimeSlotRepository: Slot catalog and atomic capacity counters
- BookingRepository: Booking ledger, status compare-and-set, admin listings
- MembershipRepository: Memberships and purchase audit rows
- UserRepository: Profile mirror of identity provider accounts

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_time_slot_repository(db)
    slots = repository.list_open_community(slot_date)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .membership_repository import MembershipRepository
from .time_slot_repository import TimeSlotRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "MembershipRepository",
    "RepositoryFactory",
    "TimeSlotRepository",
    "UserRepository",
]
