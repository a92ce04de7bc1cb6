# backend/app/services/availability_service.py
"""
Availability Service

Read-side answers to "what can be booked" for community and private
sessions. Results are advisory: the booking ledger re-checks atomically when
it takes capacity.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_PARTY_SIZE, MIN_PARTY_SIZE, PRIVATE_HOURS, private_window_for
from ..core.exceptions import ValidationException
from ..models.time_slot import SessionKind
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.time_slot_repository import TimeSlotRepository
from ..utils.time_helpers import window_display
from .base import BaseService


@dataclass(frozen=True)
class AvailableSlot:
    """A bookable window as shown to customers."""

    slot_id: str
    slot_date: date
    start_time: time
    end_time: time
    session_kind: SessionKind
    max_capacity: int
    spots_remaining: int

    @property
    def time_display(self) -> str:
        return window_display(self.start_time, self.end_time)


def private_candidate_id(slot_date: date, start_time: time) -> str:
    return f"private-{slot_date.isoformat()}-{start_time.strftime('%H%M')}"


class AvailabilityService(BaseService):
    """Lists open slots and answers bookability questions."""

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[TimeSlotRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.slot_repository = slot_repository or RepositoryFactory.create_time_slot_repository(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    @BaseService.measure_operation("list_available")
    def list_available(self, slot_date: date, session_kind: SessionKind) -> List[AvailableSlot]:
        """
        Open slots on ``slot_date`` for ``session_kind``, ordered by start time.

        Community: generated slots that are open with at least one spot left.
        Private: one candidate per private window with no confirmed booking of
        either kind at that start time.
        """
        if SessionKind(session_kind) == SessionKind.COMMUNITY:
            return [
                AvailableSlot(
                    slot_id=slot.id,
                    slot_date=slot.slot_date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    session_kind=SessionKind.COMMUNITY,
                    max_capacity=slot.max_capacity,
                    spots_remaining=slot.spots_remaining,
                )
                for slot in self.slot_repository.list_open_community(slot_date)
            ]

        taken = self.booking_repository.confirmed_start_times(slot_date)
        existing = {
            slot.start_time: slot
            for slot in self.slot_repository.list_in_range(
                slot_date, slot_date, SessionKind.PRIVATE
            )
        }
        candidates = []
        for window_start, window_end in PRIVATE_HOURS:
            if window_start in taken:
                continue
            row = existing.get(window_start)
            if row is not None and not row.is_available:
                continue
            candidates.append(
                AvailableSlot(
                    slot_id=row.id if row is not None else private_candidate_id(slot_date, window_start),
                    slot_date=slot_date,
                    start_time=window_start,
                    end_time=window_end,
                    session_kind=SessionKind.PRIVATE,
                    max_capacity=MAX_PARTY_SIZE,
                    spots_remaining=MAX_PARTY_SIZE,
                )
            )
        return candidates

    def is_bookable(
        self,
        slot_date: date,
        start_time: time,
        party_size: int,
        session_kind: SessionKind,
    ) -> bool:
        """
        Whether a party of ``party_size`` could book this window right now.

        Raises:
            ValidationException: party_size outside the allowed range
        """
        if party_size < MIN_PARTY_SIZE or party_size > MAX_PARTY_SIZE:
            raise ValidationException(
                f"party_size must be between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}",
                code="INVALID_PARTY_SIZE",
                details={"party_size": party_size},
            )

        if SessionKind(session_kind) == SessionKind.COMMUNITY:
            slot = self.slot_repository.get_slot(slot_date, start_time, SessionKind.COMMUNITY)
            if slot is None or not slot.is_available:
                return False
            return slot.current_bookings + party_size <= slot.max_capacity

        if private_window_for(start_time) is None:
            return False
        return not self.booking_repository.has_confirmed_at(slot_date, start_time)
