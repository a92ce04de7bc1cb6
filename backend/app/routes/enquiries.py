# backend/app/routes/enquiries.py
"""
Private event request and contact form routes.

Router Endpoints:
    POST /events - Ask to hire the sauna for a private event
    POST /contact - Send a message through the contact form
"""

import logging

from fastapi import APIRouter, Depends

from ..api.dependencies import get_email_service
from ..core.exceptions import DomainException
from ..schemas.enquiry import ContactRequest, EnquiryResponse, EventRequest
from ..services.email import EmailService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["enquiries"])


@router.post("/events", response_model=EnquiryResponse)
def request_event(
    payload: EventRequest,
    email_service: EmailService = Depends(get_email_service),
) -> EnquiryResponse:
    try:
        email_service.send_event_request(payload)
    except DomainException as e:
        logger.error(f"Event request from {payload.email} could not be delivered: {e.message}")
        handle_domain_exception(e)

    return EnquiryResponse(message="Event request submitted successfully")


@router.post("/contact", response_model=EnquiryResponse)
def send_contact_message(
    payload: ContactRequest,
    email_service: EmailService = Depends(get_email_service),
) -> EnquiryResponse:
    try:
        email_service.send_contact_message(payload)
    except DomainException as e:
        logger.error(f"Contact message from {payload.email} could not be delivered: {e.message}")
        handle_domain_exception(e)

    return EnquiryResponse(message="Contact form submitted successfully")
