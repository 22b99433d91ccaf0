# backend/app/repositories/mentor_profile_repository.py
"""
Read-only mentor profile access for the booking core.

Answers the profile questions the core needs: weekly availability,
session durations, hourly rate and external calendar identity.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.mentor_profile import MentorProfile, WeeklyAvailabilityDay
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MentorProfileRepository(BaseRepository[MentorProfile]):
    def __init__(self, db: Session):
        super().__init__(db, MentorProfile)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(MentorProfile.availability_days).selectinload(
                WeeklyAvailabilityDay.time_slots
            ),
            selectinload(MentorProfile.user),
        )

    def get_by_user_id(self, user_id: str) -> Optional[MentorProfile]:
        """Mentor profile for the mentor's user id, with the weekly schedule loaded."""
        try:
            query = self.db.query(MentorProfile).filter(MentorProfile.user_id == user_id)
            return self._apply_eager_loading(query).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting mentor profile for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve mentor profile: {str(e)}")

    def list_calendar_linked(self) -> List[MentorProfile]:
        """Profiles that already have a remote event type."""
        try:
            query = (
                self.db.query(MentorProfile)
                .filter(MentorProfile.calcom_event_type_id.isnot(None))
                .order_by(MentorProfile.user_id)
            )
            return self._apply_eager_loading(query).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing calendar-linked mentor profiles: {str(e)}")
            raise RepositoryException(f"Failed to list mentor profiles: {str(e)}")

    def set_event_type_id(self, profile: MentorProfile, event_type_id: int) -> None:
        profile.calcom_event_type_id = event_type_id
        self.db.flush()
