# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user, get_current_user_optional, require_admin
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_email_service,
    get_membership_service,
    get_pricing_service,
    get_slot_catalog_service,
    get_stripe_service,
    get_waiver_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_user_optional",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_email_service",
    "get_membership_service",
    "get_pricing_service",
    "get_slot_catalog_service",
    "get_stripe_service",
    "get_waiver_service",
]
