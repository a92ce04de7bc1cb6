# backend/app/repositories/booking_repository.py
"""
Booking Repository

Implements data access for the booking ledger:
- Booking CRUD and lookups by checkout session
- Compare-and-set status transitions
- Confirmed-booking queries used by the availability checks
- Admin listings and the stale pending sweep
"""

from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus
from ..models.time_slot import TimeSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_by_checkout_session(self, checkout_session_id: str) -> Optional[Booking]:
        return self.find_one_by(checkout_session_id=checkout_session_id)

    def get_booking_with_details(self, booking_id: str) -> Optional[Booking]:
        """Get a booking with its time slot loaded."""
        try:
            return (
                self._apply_eager_loading(self.db.query(Booking))
                .filter(Booking.id == booking_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking details: {str(e)}")
            raise RepositoryException(f"Failed to get booking details: {str(e)}")

    def transition(
        self,
        booking_id: str,
        from_status: BookingStatus,
        values: Dict[str, Any],
    ) -> bool:
        """
        Move a booking out of ``from_status`` in one conditional UPDATE.

        Returns:
            True if this call performed the transition, False if the booking was
            no longer in ``from_status`` (already handled by someone else)
        """
        updated = self.conditional_update(
            [Booking.id == booking_id, Booking.status == from_status],
            values,
        )
        return updated == 1

    # Availability queries

    def has_confirmed_at(self, slot_date: date, start_time: time) -> bool:
        """Whether any confirmed booking, of either session kind, starts at this time."""
        try:
            return (
                self.db.query(Booking.id)
                .join(TimeSlot, Booking.time_slot_id == TimeSlot.id)
                .filter(
                    TimeSlot.slot_date == slot_date,
                    TimeSlot.start_time == start_time,
                    Booking.status == BookingStatus.CONFIRMED,
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking confirmed bookings: {str(e)}")
            raise RepositoryException(f"Failed to check confirmed bookings: {str(e)}")

    def confirmed_start_times(self, slot_date: date) -> Set[time]:
        """Start times on ``slot_date`` that carry at least one confirmed booking."""
        try:
            rows = (
                self.db.query(TimeSlot.start_time)
                .join(Booking, Booking.time_slot_id == TimeSlot.id)
                .filter(
                    TimeSlot.slot_date == slot_date,
                    Booking.status == BookingStatus.CONFIRMED,
                )
                .distinct()
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing confirmed start times: {str(e)}")
            raise RepositoryException(f"Failed to list confirmed start times: {str(e)}")
        return {row[0] for row in rows}

    # Listings

    def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Booking]:
        """Bookings newest first, optionally filtered by status."""
        query = self._apply_eager_loading(self._build_query())
        if status is not None:
            query = query.filter(Booking.status == status)
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
        return self._execute_query(query.offset(offset).limit(limit))

    def get_stale_pending(self, created_before: datetime, limit: int = 200) -> List[Booking]:
        """Pending bookings created before ``created_before``, oldest first."""
        query = (
            self._build_query()
            .filter(
                Booking.status == BookingStatus.PENDING,
                Booking.created_at < created_before,
            )
            .order_by(Booking.created_at)
            .limit(limit)
        )
        return self._execute_query(query)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.time_slot))
