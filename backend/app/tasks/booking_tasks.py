# backend/app/tasks/booking_tasks.py
"""
Periodic booking maintenance tasks.

- expire_stale_pending_bookings: settles pending bookings whose checkout
  window has passed (confirms missed payments, fails the rest)
- refresh_time_slots: keeps community slots generated for the booking horizon
"""

import logging
from typing import Dict

from app.core.config import settings
from app.database import SessionLocal
from app.services.booking_service import BookingService
from app.services.slot_catalog_service import SlotCatalogService
from app.tasks.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    base=BaseTask,
    name="app.tasks.booking_tasks.expire_stale_pending_bookings",
    bind=True,
    max_retries=1,
)
def expire_stale_pending_bookings(self) -> Dict[str, int]:
    db = SessionLocal()
    try:
        counts = BookingService(db).expire_stale_pending()
        if counts["examined"]:
            logger.info(f"Stale pending sweep: {counts}")
        return counts
    finally:
        db.close()


@celery_app.task(
    base=BaseTask,
    name="app.tasks.booking_tasks.refresh_time_slots",
    bind=True,
    max_retries=3,
)
def refresh_time_slots(self, days_ahead: int = settings.slot_horizon_days) -> Dict[str, int]:
    """Generate any missing community slots from today through the horizon."""
    db = SessionLocal()
    try:
        created = SlotCatalogService(db).generate_slots(days_ahead=days_ahead)
        logger.info(f"Generated {created} time slots for the next {days_ahead} days")
        return {"created": created, "days_ahead": days_ahead}
    finally:
        db.close()
