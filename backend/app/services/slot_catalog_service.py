# backend/app/services/slot_catalog_service.py
"""
Slot Catalog Service

Maintains the catalog of bookable time slots:
- Rolling generation of community slots for the booking horizon
- On-demand creation of private slots
- One-off slots added by administrators

Generation is an idempotent upsert. Existing rows, and their booking
counters, are never reset.
"""

from datetime import date, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session
import ulid

from ..core.constants import (
    COMMUNITY_HOURS,
    DEFAULT_SLOT_CAPACITY,
    SLOT_HORIZON_DAYS,
    private_window_for,
)
from ..core.exceptions import ConflictException, ValidationException
from ..core.timezone_utils import get_business_today
from ..models.time_slot import SessionKind, TimeSlot
from ..repositories.factory import RepositoryFactory
from ..repositories.time_slot_repository import TimeSlotRepository
from .base import BaseService


class SlotCatalogService(BaseService):
    """Creates community, private and ad-hoc time slots."""

    def __init__(self, db: Session, repository: Optional[TimeSlotRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_time_slot_repository(db)

    @BaseService.measure_operation("generate_slots")
    def generate_slots(self, days_ahead: int = SLOT_HORIZON_DAYS, today: Optional[date] = None) -> int:
        """
        Ensure community slots exist from ``today`` through ``today + days_ahead``.

        Each day is committed on its own, so a failure part way through leaves
        the earlier days in place and a retry only fills the gap.

        Args:
            days_ahead: Number of days past today to cover (inclusive)
            today: First day to generate (defaults to today in the business timezone)

        Returns:
            Number of slot rows created by this call
        """
        if days_ahead < 0:
            raise ValidationException("days_ahead must be zero or greater", code="INVALID_HORIZON")

        start = today or get_business_today()
        created = 0
        for offset in range(days_ahead + 1):
            slot_date = start + timedelta(days=offset)
            rows = [
                {
                    "id": str(ulid.ULID()),
                    "slot_date": slot_date,
                    "start_time": window_start,
                    "end_time": window_end,
                    "slot_kind": SessionKind.COMMUNITY,
                    "max_capacity": DEFAULT_SLOT_CAPACITY,
                    "current_bookings": 0,
                    "is_available": True,
                }
                for window_start, window_end in COMMUNITY_HOURS
            ]
            with self.transaction():
                created += self.repository.insert_missing(rows)

        self.log_operation(
            "generate_slots", start_date=start.isoformat(), days_ahead=days_ahead, created=created
        )
        return created

    def get_or_create_private_slot(self, slot_date: date, start_time: time) -> TimeSlot:
        """
        Return the private slot for a configured private window, creating it if needed.

        Flushes but does not commit; callers include it in their own transaction.
        """
        window = private_window_for(start_time)
        if window is None:
            raise ValidationException(
                "Private sessions start on the hour between 7am and 9pm",
                code="INVALID_PRIVATE_WINDOW",
                details={"start_time": start_time.strftime("%H:%M")},
            )

        slot = self.repository.get_slot(slot_date, start_time, SessionKind.PRIVATE)
        if slot is not None:
            return slot

        self.repository.insert_missing(
            [
                {
                    "id": str(ulid.ULID()),
                    "slot_date": slot_date,
                    "start_time": window[0],
                    "end_time": window[1],
                    "slot_kind": SessionKind.PRIVATE,
                    "max_capacity": DEFAULT_SLOT_CAPACITY,
                    "current_bookings": 0,
                    "is_available": True,
                }
            ]
        )
        slot = self.repository.get_slot(slot_date, start_time, SessionKind.PRIVATE)
        if slot is None:
            raise ConflictException("Private slot could not be created", code="SLOT_CREATE_FAILED")
        return slot

    @BaseService.measure_operation("create_slot")
    def create_slot(
        self,
        slot_date: date,
        start_time: time,
        end_time: time,
        slot_kind: SessionKind = SessionKind.COMMUNITY,
        max_capacity: int = DEFAULT_SLOT_CAPACITY,
    ) -> TimeSlot:
        """Add a single slot (admin). Duplicate (date, start, kind) is a conflict."""
        if start_time >= end_time:
            raise ValidationException("start_time must be before end_time", code="INVALID_WINDOW")
        if max_capacity < 1:
            raise ValidationException("max_capacity must be at least 1", code="INVALID_CAPACITY")

        with self.transaction():
            if self.repository.get_slot(slot_date, start_time, slot_kind) is not None:
                raise ConflictException(
                    "A slot already exists for that date, time and kind",
                    code="SLOT_EXISTS",
                    details={
                        "date": slot_date.isoformat(),
                        "start_time": start_time.strftime("%H:%M"),
                        "slot_kind": SessionKind(slot_kind).value,
                    },
                )
            slot = self.repository.create(
                slot_date=slot_date,
                start_time=start_time,
                end_time=end_time,
                slot_kind=slot_kind,
                max_capacity=max_capacity,
                current_bookings=0,
                is_available=True,
            )
        return slot

    def list_slots(
        self,
        start_date: date,
        end_date: date,
        slot_kind: Optional[SessionKind] = None,
    ) -> List[TimeSlot]:
        """All slots in a date range, open or not (admin)."""
        if end_date < start_date:
            raise ValidationException("end_date must not be before start_date", code="INVALID_RANGE")
        return self.repository.list_in_range(start_date, end_date, slot_kind)
