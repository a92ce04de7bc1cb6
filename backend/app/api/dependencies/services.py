# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.email import EmailService
from ...services.membership_service import MembershipService
from ...services.pricing_service import PricingService
from ...services.slot_catalog_service import SlotCatalogService
from ...services.stripe_service import StripeService
from ...services.template_service import TemplateService
from ...services.waiver_service import WaiverService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_template_service() -> TemplateService:
    """Shared Jinja2 environment."""
    return TemplateService()


def get_stripe_service() -> StripeService:
    return StripeService()


def get_email_service(
    template_service: TemplateService = Depends(get_template_service),
) -> EmailService:
    """Get EmailService instance with proper dependencies."""
    return EmailService(template_service=template_service)


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_slot_catalog_service(db: Session = Depends(get_db)) -> SlotCatalogService:
    return SlotCatalogService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
    email_service: EmailService = Depends(get_email_service),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        stripe_service: Payment gateway
        email_service: Confirmation email sender

    Returns:
        BookingService instance
    """
    return BookingService(db, stripe_service=stripe_service, email_service=email_service)


def get_membership_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> MembershipService:
    return MembershipService(db, stripe_service=stripe_service)


def get_waiver_service(
    db: Session = Depends(get_db),
    template_service: TemplateService = Depends(get_template_service),
) -> WaiverService:
    return WaiverService(db, template_service=template_service)
