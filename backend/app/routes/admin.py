# backend/app/routes/admin.py
"""
Administrator routes.

Router Endpoints:
    GET /admin/bookings - List bookings, newest first
    POST /admin/bookings/{booking_id}/cancel - Cancel a booking, optionally refunding
    GET /admin/time-slots - Slots in a date range
    GET /admin/memberships - List memberships
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..api.dependencies import (
    get_booking_service,
    get_membership_service,
    get_slot_catalog_service,
    require_admin,
)
from ..core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ..core.exceptions import DomainException
from ..models.booking import BookingStatus
from ..models.membership import MembershipStatus
from ..models.time_slot import SessionKind
from ..models.user import User
from ..schemas.booking import BookingCancelRequest, BookingListResponse, BookingResponse
from ..schemas.membership import MembershipListResponse, MembershipResponse
from ..schemas.time_slot import TimeSlotResponse
from ..services.booking_service import BookingService
from ..services.membership_service import MembershipService
from ..services.slot_catalog_service import SlotCatalogService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    offset: int = Query(0, ge=0),
    _: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = booking_service.list_bookings(status=status, limit=limit, offset=offset)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=booking_service.count_bookings(status),
        limit=limit,
        offset=offset,
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: BookingCancelRequest,
    current_user: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = booking_service.cancel(booking_id, reason=payload.reason, refund=payload.refund)
    except DomainException as e:
        handle_domain_exception(e)

    logger.info(f"Admin {current_user.id} cancelled booking {booking_id} (refund={payload.refund})")
    return BookingResponse.model_validate(booking)


@router.get("/time-slots", response_model=List[TimeSlotResponse])
def list_time_slots(
    start_date: date = Query(...),
    end_date: date = Query(...),
    session_kind: Optional[SessionKind] = Query(None, alias="type"),
    _: User = Depends(require_admin),
    catalog_service: SlotCatalogService = Depends(get_slot_catalog_service),
) -> List[TimeSlotResponse]:
    try:
        slots = catalog_service.list_slots(start_date, end_date, session_kind)
    except DomainException as e:
        handle_domain_exception(e)

    return [TimeSlotResponse.model_validate(slot) for slot in slots]


@router.get("/memberships", response_model=MembershipListResponse)
def list_memberships(
    status: Optional[MembershipStatus] = Query(None),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    offset: int = Query(0, ge=0),
    _: User = Depends(require_admin),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipListResponse:
    memberships = membership_service.list_memberships(status=status, limit=limit, offset=offset)
    return MembershipListResponse(
        memberships=[MembershipResponse.model_validate(m) for m in memberships],
        limit=limit,
        offset=offset,
    )
