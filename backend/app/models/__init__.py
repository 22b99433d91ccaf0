"""
Database models for MentorMatch.

- User accounts (students and mentors)
- Mentor profiles with their weekly availability
- Bookings (sessions)
"""

from .booking import (
    Booking,
    BookingStatus,
    CancelledBy,
    MeetingProvider,
    PaymentStatus,
    RefundStatus,
)
from .mentor_profile import AvailabilityTimeSlot, MentorProfile, WeeklyAvailabilityDay
from .user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "MentorProfile",
    "WeeklyAvailabilityDay",
    "AvailabilityTimeSlot",
    "Booking",
    "BookingStatus",
    "CancelledBy",
    "MeetingProvider",
    "PaymentStatus",
    "RefundStatus",
]
