# backend/app/repositories/factory.py
"""
Repository Factory for MentorMatch

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .mentor_profile_repository import MentorProfileRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_mentor_profile_repository(db: Session) -> "MentorProfileRepository":
        """Create repository for mentor profile lookups."""
        from .mentor_profile_repository import MentorProfileRepository

        return MentorProfileRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> BaseRepository:
        from ..models.user import User

        return BaseRepository(db, User)
