# backend/app/repositories/booking_repository.py
"""
Booking Repository for MentorMatch

Data access for bookings: overlap queries used by the conflict filter and
the commit-time re-check, the per-mentor write lock, per-user listings and
the sweeps run by background jobs.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional, Sequence, Tuple, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from ..models.mentor_profile import MentorProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Conflict queries

    def get_overlapping_bookings(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Non-cancelled bookings for ``mentor_id`` that overlap ``[start, end)``.

        Touching intervals (one ends exactly when the other starts) are not
        returned.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.mentor_id == mentor_id,
                Booking.status != BookingStatus.CANCELLED.value,
                Booking.scheduled_time < end,
                Booking.end_time > start,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.scheduled_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overlapping bookings: {str(e)}")
            raise RepositoryException(f"Failed to get overlapping bookings: {str(e)}")

    def get_bookings_in_range(self, mentor_id: str, range_start: datetime, range_end: datetime) -> List[Booking]:
        """All non-cancelled bookings for a mentor touching the given day window."""
        return self.get_overlapping_bookings(mentor_id, range_start, range_end)

    def lock_mentor_schedule(self, mentor_id: str) -> bool:
        """
        Serialize booking writers for one mentor.

        Bumps ``mentor_profiles.booking_version`` inside the caller's
        transaction. PostgreSQL holds the row lock until commit; SQLite holds
        its database write lock, so a second writer waits here.

        Returns:
            False if the mentor has no profile row
        """
        try:
            updated = (
                self.db.query(MentorProfile)
                .filter(MentorProfile.user_id == mentor_id)
                .update(
                    {MentorProfile.booking_version: MentorProfile.booking_version + 1},
                    synchronize_session=False,
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking schedule for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock mentor schedule: {str(e)}")

    # Listings

    def list_for_user(
        self,
        user_id: str,
        *,
        statuses: Optional[Sequence[str]] = None,
        starts_after: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        newest_first: bool = True,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Booking], int]:
        """
        Bookings where the user is either the student or the mentor.

        Returns:
            (page of bookings, total matching count)
        """
        try:
            query = self.db.query(Booking).filter(
                or_(Booking.student_id == user_id, Booking.mentor_id == user_id)
            )
            if statuses:
                query = query.filter(Booking.status.in_(list(statuses)))
            if starts_after is not None:
                query = query.filter(Booking.scheduled_time >= starts_after)
            if starts_before is not None:
                query = query.filter(Booking.scheduled_time < starts_before)

            total = query.count()
            order = Booking.scheduled_time.desc() if newest_first else Booking.scheduled_time.asc()
            items = query.order_by(order).offset(offset).limit(limit).all()
            return cast(List[Booking], items), total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    # Sweeps

    def get_expired_pending(self, now: datetime) -> List[Booking]:
        """Pending bookings whose acceptance deadline has passed."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.PENDING_MENTOR_ACCEPTANCE.value,
                    Booking.auto_decline_at.isnot(None),
                    Booking.auto_decline_at <= now,
                )
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting expired pending bookings: {str(e)}")
            raise RepositoryException(f"Failed to get expired bookings: {str(e)}")

    def get_due_for_completion(self, now: datetime) -> List[Booking]:
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.end_time <= now,
                )
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings due for completion: {str(e)}")
            raise RepositoryException(f"Failed to get bookings due for completion: {str(e)}")

    def get_starting_soon_without_link(self, now: datetime, window_minutes: int = 30) -> List[Booking]:
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.scheduled_time > now,
                    Booking.scheduled_time <= now + timedelta(minutes=window_minutes),
                    or_(Booking.meeting_url.is_(None), Booking.meeting_url == ""),
                )
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sessions without meeting link: {str(e)}")
            raise RepositoryException(f"Failed to get sessions without meeting link: {str(e)}")

    def count_active_for_mentor(self, mentor_id: str) -> int:
        return (
            self.db.query(Booking)
            .filter(Booking.mentor_id == mentor_id, Booking.status.in_(ACTIVE_STATUSES))
            .count()
        )
