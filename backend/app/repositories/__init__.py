# backend/app/repositories/__init__.py
"""
Repository layer for MentorMatch.

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    overlapping = repository.get_overlapping_bookings(mentor_id, start, end)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .mentor_profile_repository import MentorProfileRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "MentorProfileRepository",
    "RepositoryFactory",
]
