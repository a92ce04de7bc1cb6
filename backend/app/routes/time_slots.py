# backend/app/routes/time_slots.py
"""
Time slot routes.

Router Endpoints:
    GET /time-slots - Open slots for a date and session kind
    GET /time-slots/check - Whether a party can book a window
    POST /time-slots/generate - Generate community slots (admin)
    POST /time-slots - Add a single slot (admin)
"""

from datetime import date, time
import logging

from fastapi import APIRouter, Depends, Query, status

from ..api.dependencies import (
    get_availability_service,
    get_slot_catalog_service,
    require_admin,
)
from ..core.constants import MAX_PARTY_SIZE, MIN_PARTY_SIZE
from ..core.exceptions import DomainException
from ..models.time_slot import SessionKind
from ..models.user import User
from ..schemas.time_slot import (
    AvailableSlotResponse,
    AvailableSlotsResponse,
    BookabilityResponse,
    GenerateSlotsRequest,
    GenerateSlotsResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from ..services.availability_service import AvailabilityService
from ..services.slot_catalog_service import SlotCatalogService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-slots", tags=["time-slots"])


@router.get("", response_model=AvailableSlotsResponse)
def list_time_slots(
    slot_date: date = Query(..., alias="date", description="Session date (YYYY-MM-DD)"),
    session_kind: SessionKind = Query(SessionKind.COMMUNITY, alias="type"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    """List open slots for a date, ordered by start time."""
    try:
        slots = availability_service.list_available(slot_date, session_kind)
    except DomainException as e:
        handle_domain_exception(e)

    return AvailableSlotsResponse(
        slot_date=slot_date,
        session_kind=session_kind,
        slots=[
            AvailableSlotResponse(
                slot_id=slot.slot_id,
                slot_date=slot.slot_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                time_display=slot.time_display,
                session_kind=slot.session_kind,
                max_capacity=slot.max_capacity,
                spots_remaining=slot.spots_remaining,
            )
            for slot in slots
        ],
    )


@router.get("/check", response_model=BookabilityResponse)
def check_time_slot(
    slot_date: date = Query(..., alias="date"),
    start_time: time = Query(..., description="Start time (HH:MM)"),
    party_size: int = Query(..., ge=MIN_PARTY_SIZE, le=MAX_PARTY_SIZE),
    session_kind: SessionKind = Query(SessionKind.COMMUNITY, alias="type"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BookabilityResponse:
    try:
        bookable = availability_service.is_bookable(slot_date, start_time, party_size, session_kind)
    except DomainException as e:
        handle_domain_exception(e)

    return BookabilityResponse(
        slot_date=slot_date,
        start_time=start_time,
        session_kind=session_kind,
        party_size=party_size,
        bookable=bookable,
    )


@router.post("/generate", response_model=GenerateSlotsResponse)
def generate_time_slots(
    payload: GenerateSlotsRequest,
    current_user: User = Depends(require_admin),
    catalog_service: SlotCatalogService = Depends(get_slot_catalog_service),
) -> GenerateSlotsResponse:
    """Generate community slots from today through ``days_ahead`` (admin)."""
    try:
        created = catalog_service.generate_slots(days_ahead=payload.days_ahead)
    except DomainException as e:
        handle_domain_exception(e)

    logger.info(f"Admin {current_user.id} generated {created} slots")
    return GenerateSlotsResponse(created=created, days_ahead=payload.days_ahead)


@router.post("", response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
def create_time_slot(
    payload: TimeSlotCreate,
    current_user: User = Depends(require_admin),
    catalog_service: SlotCatalogService = Depends(get_slot_catalog_service),
) -> TimeSlotResponse:
    try:
        slot = catalog_service.create_slot(
            slot_date=payload.slot_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            slot_kind=payload.slot_kind,
            max_capacity=payload.max_capacity,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return TimeSlotResponse.model_validate(slot)
