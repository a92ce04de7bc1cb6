# backend/app/schemas/__init__.py
"""
Pydantic schemas for the sauna booking API.

Request models forbid unknown fields; response models are built from ORM
objects with ``from_attributes``.
"""

from .booking import (
    BookingCancelRequest,
    BookingCheckoutRequest,
    BookingCheckoutResponse,
    BookingListResponse,
    BookingResponse,
    PriceQuoteResponse,
    TimeSlotSummary,
)
from .enquiry import ContactRequest, EnquiryResponse, EventRequest
from .main_responses import HealthResponse, RootResponse
from .membership import (
    MembershipCancelResponse,
    MembershipCheckoutRequest,
    MembershipCheckoutResponse,
    MembershipListResponse,
    MembershipResponse,
    MembershipStatusResponse,
)
from .payment_schemas import WebhookResponse
from .time_slot import (
    AvailableSlotResponse,
    AvailableSlotsResponse,
    BookabilityResponse,
    GenerateSlotsRequest,
    GenerateSlotsResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from .waiver import WaiverResponse, WaiverSignRequest, WaiverTextResponse

__all__ = [
    # Bookings
    "BookingCancelRequest",
    "BookingCheckoutRequest",
    "BookingCheckoutResponse",
    "BookingListResponse",
    "BookingResponse",
    "PriceQuoteResponse",
    "TimeSlotSummary",
    # Time slots
    "AvailableSlotResponse",
    "AvailableSlotsResponse",
    "BookabilityResponse",
    "GenerateSlotsRequest",
    "GenerateSlotsResponse",
    "TimeSlotCreate",
    "TimeSlotResponse",
    # Memberships
    "MembershipCancelResponse",
    "MembershipCheckoutRequest",
    "MembershipCheckoutResponse",
    "MembershipListResponse",
    "MembershipResponse",
    "MembershipStatusResponse",
    # Waivers
    "WaiverResponse",
    "WaiverSignRequest",
    "WaiverTextResponse",
    # Enquiries
    "ContactRequest",
    "EnquiryResponse",
    "EventRequest",
    # Infrastructure
    "HealthResponse",
    "RootResponse",
    "WebhookResponse",
]
