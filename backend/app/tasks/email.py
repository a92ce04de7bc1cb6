# backend/app/tasks/email.py
"""
Email-related Celery tasks.

Confirmation emails are first attempted inline when a booking is confirmed;
this task retries the ones that failed.
"""

import logging
from typing import Any, Dict

from app.database import SessionLocal
from app.models.booking import BookingStatus
from app.repositories.factory import RepositoryFactory
from app.services.email import EmailService
from app.tasks.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)


class ConfirmationNotSent(Exception):
    """Raised to trigger a retry when the provider did not accept the email."""


@celery_app.task(
    base=BaseTask,
    name="app.tasks.email.send_booking_confirmation",
    bind=True,
    max_retries=3,
)
def send_booking_confirmation(self, booking_id: str) -> Dict[str, Any]:
    """
    Send the booking confirmation email for a confirmed booking.

    Args:
        booking_id: ID of the booking

    Returns:
        dict: Result of email sending operation
    """
    db = SessionLocal()
    try:
        booking = RepositoryFactory.create_booking_repository(db).get_booking_with_details(booking_id)
        if not booking:
            logger.error(f"Booking {booking_id} not found")
            return {"status": "error", "message": f"Booking {booking_id} not found"}
        if booking.status != BookingStatus.CONFIRMED:
            logger.info(f"Booking {booking_id} is {booking.status}; skipping confirmation email")
            return {"status": "skipped", "booking_id": booking_id}

        if not EmailService().send_booking_confirmation(booking):
            raise ConfirmationNotSent(f"Confirmation email for booking {booking_id} not sent")

        return {"status": "success", "booking_id": booking_id}
    except ConfirmationNotSent as exc:
        logger.warning(f"Retrying confirmation email for booking {booking_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2**self.request.retries))
    finally:
        db.close()
