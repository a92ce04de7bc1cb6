# backend/app/services/email.py
"""
Email Service

Sends transactional email through the Resend API, or writes it to the log
when EMAIL_PROVIDER=console (local development and tests).

Booking confirmation emails are best effort: send_booking_confirmation
returns False on failure and never raises, so a delivery problem can never
undo a confirmed booking. Event requests and contact messages go to the
enquiry inbox with an acknowledgement to the sender; there a send failure
raises NotificationException so the form can report it.
"""

import logging
import re
from typing import Any, Dict, Optional

import resend

from ..core.config import settings
from ..core.constants import BRAND_NAME, ENQUIRY_PHONE, SAUNA_LOCATION
from ..core.exceptions import NotificationException, ServiceException
from ..models.booking import Booking
from ..models.time_slot import SessionKind
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.enquiry import ContactRequest, EventRequest
from .base import BaseService
from .template_service import TemplateService

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION_TEMPLATE = "email/booking/confirmation.html"
EVENT_REQUEST_ADMIN_TEMPLATE = "email/enquiries/event_request_admin.html"
EVENT_REQUEST_CUSTOMER_TEMPLATE = "email/enquiries/event_request_customer.html"
CONTACT_ADMIN_TEMPLATE = "email/enquiries/contact_admin.html"
CONTACT_CUSTOMER_TEMPLATE = "email/enquiries/contact_customer.html"


class EmailService:
    """
    Service for sending emails using Resend API.

    Uses dependency injection pattern: pass a TemplateService to share one
    Jinja2 environment.
    """

    def __init__(self, template_service: Optional[TemplateService] = None, provider: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.template_service = template_service or TemplateService()
        self.provider = provider or settings.email_provider
        self.from_email = settings.from_email

        if self.provider == "resend":
            if not settings.resend_api_key:
                raise ServiceException("Resend API key not configured", code="EMAIL_NOT_CONFIGURED")
            resend.api_key = settings.resend_api_key

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML content to plain text for better deliverability"""
        text = re.sub(r"<[^>]+>", "", html_content)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send a generic email.

        Returns:
            Dict containing the provider response

        Raises:
            NotificationException: If email sending fails
        """
        if not text_content:
            text_content = self._html_to_text(html_content)

        email_data = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content,
        }
        if reply_to:
            email_data["reply_to"] = reply_to

        if self.provider == "console":
            self.logger.info(f"[console email] to={to_email} subject={subject!r}\n{text_content}")
            return {"id": "console"}

        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            self.logger.error(f"Failed to send email to {to_email}: {type(e).__name__}: {str(e)}")
            raise NotificationException(f"Email sending failed: {str(e)}", code="EMAIL_SEND_FAILED") from e

        self.logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return response

    @BaseService.measure_operation("send_booking_confirmation")
    def send_booking_confirmation(self, booking: Booking) -> bool:
        """
        Send the booking confirmation email.

        Args:
            booking: A confirmed booking with its time slot loaded

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        slot = booking.time_slot
        kind = SessionKind(booking.session_kind)
        session_label = "private sauna session" if kind == SessionKind.PRIVATE else "community sauna session"
        date_label = slot.slot_date.strftime("%B %-d, %Y")
        time_label = slot.start_time.strftime("%-I:%M %p")
        subject = f"Sauna Booking Confirmed - {date_label} at {time_label}"

        try:
            html_content = self.template_service.render_template(
                BOOKING_CONFIRMATION_TEMPLATE,
                context={
                    "booking_id": booking.id,
                    "customer_name": booking.customer_name,
                    "session_label": session_label,
                    "slot_date": slot.slot_date,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "party_size": booking.party_size,
                    "total_amount_cents": booking.total_amount_cents,
                },
            )
            text_content = (
                f"Your {session_label} at {BRAND_NAME} is confirmed for {date_label} at {time_label} "
                f"({booking.party_size} guests). Location: {SAUNA_LOCATION}. Booking {booking.id}."
            )
            self.send_email(
                to_email=booking.customer_email,
                subject=subject,
                html_content=html_content,
                text_content=text_content,
            )
        except NotificationException:
            # Already logged in send_email
            prometheus_metrics.record_email("booking_confirmation", "failed")
            return False
        except Exception as e:
            self.logger.error(f"Unexpected error sending confirmation for booking {booking.id}: {str(e)}")
            prometheus_metrics.record_email("booking_confirmation", "failed")
            return False

        prometheus_metrics.record_email("booking_confirmation", "sent")
        return True

    def _send_enquiry(
        self,
        kind: str,
        admin_template: str,
        admin_subject: str,
        customer_template: str,
        customer_subject: str,
        context: Dict[str, Any],
    ) -> None:
        """Deliver an enquiry to the inbox, then acknowledge it to the sender."""
        sender = context["email"]
        try:
            self.send_email(
                to_email=settings.enquiry_inbox_email,
                subject=admin_subject,
                html_content=self.template_service.render_template(admin_template, context=context),
                reply_to=sender,
            )
            self.send_email(
                to_email=sender,
                subject=customer_subject,
                html_content=self.template_service.render_template(customer_template, context=context),
            )
        except NotificationException:
            prometheus_metrics.record_email(kind, "failed")
            raise

        prometheus_metrics.record_email(kind, "sent")
        self.logger.info(f"Forwarded {kind} from {sender}", extra={"enquiry": kind})

    @BaseService.measure_operation("send_event_request")
    def send_event_request(self, request: EventRequest) -> None:
        """
        Forward a private event request to the inbox and acknowledge it.

        Raises:
            NotificationException: If either email cannot be sent
        """
        self._send_enquiry(
            "event_request",
            EVENT_REQUEST_ADMIN_TEMPLATE,
            f"New Event Request - {request.event_type} on {request.preferred_date.isoformat()}",
            EVENT_REQUEST_CUSTOMER_TEMPLATE,
            "Thank you for your event request",
            context={**request.model_dump(), "phone_number": ENQUIRY_PHONE},
        )

    @BaseService.measure_operation("send_contact_message")
    def send_contact_message(self, request: ContactRequest) -> None:
        """
        Forward a contact form message to the inbox and acknowledge it.

        Raises:
            NotificationException: If either email cannot be sent
        """
        self._send_enquiry(
            "contact",
            CONTACT_ADMIN_TEMPLATE,
            f"New Contact Form Message from {request.name}",
            CONTACT_CUSTOMER_TEMPLATE,
            f"Thank you for contacting {BRAND_NAME}",
            context=request.model_dump(),
        )
