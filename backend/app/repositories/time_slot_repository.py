# backend/app/repositories/time_slot_repository.py
"""
TimeSlot Repository

Data access for the slot catalog. Capacity changes go through single
conditional UPDATE statements so concurrent confirmations can never push a
slot past its capacity or below zero.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.time_slot import SessionKind, TimeSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

SLOT_CONFLICT_COLUMNS = ("slot_date", "start_time", "slot_kind")


class TimeSlotRepository(BaseRepository[TimeSlot]):
    """Repository for time slot catalog and capacity counters."""

    def __init__(self, db: Session):
        super().__init__(db, TimeSlot)

    # Catalog

    def insert_missing(self, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert slot rows, ignoring any that already exist for (date, start, kind)."""
        return self.insert_ignore(rows, SLOT_CONFLICT_COLUMNS)

    def get_slot(self, slot_date: date, start_time: time, kind: SessionKind) -> Optional[TimeSlot]:
        return self.find_one_by(slot_date=slot_date, start_time=start_time, slot_kind=kind)

    def list_open_community(self, slot_date: date) -> List[TimeSlot]:
        """Community slots on ``slot_date`` that are open and not yet full."""
        query = (
            self._build_query()
            .filter(
                TimeSlot.slot_date == slot_date,
                TimeSlot.slot_kind == SessionKind.COMMUNITY,
                TimeSlot.is_available.is_(True),
                TimeSlot.current_bookings < TimeSlot.max_capacity,
            )
            .order_by(TimeSlot.start_time)
        )
        return self._execute_query(query)

    def list_in_range(
        self,
        start_date: date,
        end_date: date,
        kind: Optional[SessionKind] = None,
    ) -> List[TimeSlot]:
        query = self._build_query().filter(
            TimeSlot.slot_date >= start_date, TimeSlot.slot_date <= end_date
        )
        if kind is not None:
            query = query.filter(TimeSlot.slot_kind == kind)
        return self._execute_query(query.order_by(TimeSlot.slot_date, TimeSlot.start_time))

    def current_bookings(self, slot_id: str) -> int:
        try:
            value = (
                self.db.query(TimeSlot.current_bookings).filter(TimeSlot.id == slot_id).scalar()
            )
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to read slot counter: {str(e)}") from e
        return int(value or 0)

    # Capacity

    def reserve_capacity(self, slot_id: str, party_size: int) -> bool:
        """
        Atomically add ``party_size`` to an open slot if it still fits.

        Returns:
            True when the row was updated, False when the slot is closed or full
        """
        updated = self.conditional_update(
            [
                TimeSlot.id == slot_id,
                TimeSlot.is_available.is_(True),
                TimeSlot.current_bookings + party_size <= TimeSlot.max_capacity,
            ],
            {"current_bookings": TimeSlot.current_bookings + party_size},
        )
        return updated == 1

    def release_capacity(self, slot_id: str, party_size: int) -> bool:
        """Subtract ``party_size`` from the counter, flooring at zero."""
        updated = self.conditional_update(
            [TimeSlot.id == slot_id],
            {
                "current_bookings": case(
                    (TimeSlot.current_bookings >= party_size, TimeSlot.current_bookings - party_size),
                    else_=0,
                )
            },
        )
        return updated == 1

    def claim_exclusive(self, slot_id: str, party_size: int) -> bool:
        """Take an empty slot for a single party and close it to everyone else."""
        updated = self.conditional_update(
            [
                TimeSlot.id == slot_id,
                TimeSlot.is_available.is_(True),
                TimeSlot.current_bookings == 0,
                TimeSlot.max_capacity >= party_size,
            ],
            {"current_bookings": party_size, "is_available": False},
        )
        return updated == 1

    def release_exclusive(self, slot_id: str) -> bool:
        updated = self.conditional_update(
            [TimeSlot.id == slot_id],
            {"current_bookings": 0, "is_available": True},
        )
        return updated == 1

    def close_if_empty(self, slot_id: str) -> bool:
        """Close a slot to new bookings provided nobody holds a place in it."""
        updated = self.conditional_update(
            [TimeSlot.id == slot_id, TimeSlot.current_bookings == 0],
            {"is_available": False},
        )
        return updated == 1

    def reopen(self, slot_id: str) -> bool:
        updated = self.conditional_update([TimeSlot.id == slot_id], {"is_available": True})
        return updated == 1
