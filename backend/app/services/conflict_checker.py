# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for MentorMatch

Handles booking conflict detection:
- the closed-open overlap test shared by every check
- filtering candidate slots against a mentor's bookings for a day
- the single-slot check run before a booking is committed

Filtering here is advisory. It narrows what students are shown but does
not by itself stop two concurrent writers; BookingService re-checks under
the per-mentor write lock and the storage constraint backs it up.
"""

from datetime import date, datetime
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.timezone_utils import ensure_utc, local_day_bounds_utc
from ..domain.availability import CandidateSlot
from ..models.booking import Booking
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def intervals_conflict(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """
    True when ``[a_start, a_end)`` and ``[b_start, b_end)`` overlap.

    Touching endpoints (``a_end == b_start``) do not conflict.
    """
    return ensure_utc(a_start) < ensure_utc(b_end) and ensure_utc(b_start) < ensure_utc(a_end)


def slot_conflicts_with(slot: CandidateSlot, bookings: Sequence[Booking]) -> bool:
    return any(
        intervals_conflict(slot.start_time, slot.end_time, booking.scheduled_time, booking.end_time)
        for booking in bookings
    )


class ConflictChecker(BaseService):
    """Service for checking booking conflicts."""

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("filter_conflicts")
    def filter_conflicts(
        self,
        slots: Sequence[CandidateSlot],
        mentor_id: str,
        target_date: date,
        tz_name: Optional[str] = "UTC",
    ) -> List[CandidateSlot]:
        """
        Drop slots that overlap any non-cancelled booking of the mentor on ``target_date``.

        Args:
            slots: Candidate slots for the date
            mentor_id: Mentor whose bookings are checked
            target_date: Calendar date in the mentor's timezone
            tz_name: Mentor's timezone, used for the day window

        Returns:
            Remaining slots in their original order
        """
        if not slots:
            return []

        day_start, day_end = local_day_bounds_utc(target_date, tz_name)
        window_start = min([day_start] + [slot.start_time for slot in slots])
        window_end = max([day_end] + [slot.end_time for slot in slots])
        bookings = self.repository.get_bookings_in_range(mentor_id, window_start, window_end)

        available = [slot for slot in slots if not slot_conflicts_with(slot, bookings)]
        removed = len(slots) - len(available)
        if removed:
            self.logger.debug(
                f"Filtered {removed} of {len(slots)} slots for mentor {mentor_id} on {target_date}"
            )
        return available

    @BaseService.measure_operation("check_booking_conflicts")
    def check_booking_conflicts(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Single-slot check: bookings that overlap ``[start, end)``.

        Args:
            mentor_id: The mentor to check
            start: Slot start (UTC)
            end: Slot end (UTC)
            exclude_booking_id: Booking to ignore (the one being rescheduled)

        Returns:
            List of conflicts with booking details
        """
        bookings = self.repository.get_overlapping_bookings(
            mentor_id, ensure_utc(start), ensure_utc(end), exclude_booking_id
        )
        conflicts = [
            {
                "booking_id": booking.id,
                "scheduled_time": booking.scheduled_time.isoformat(),
                "end_time": booking.end_time.isoformat(),
                "status": booking.status,
            }
            for booking in bookings
            if intervals_conflict(start, end, booking.scheduled_time, booking.end_time)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {mentor_id} between {start}-{end}"
            )
        return conflicts

    def has_conflict(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return bool(self.check_booking_conflicts(mentor_id, start, end, exclude_booking_id))
