# backend/app/models/mentor_profile.py
"""
Mentor profile and weekly availability models.

The weekly schedule is stored as one ``WeeklyAvailabilityDay`` row per
weekday, each owning ordered ``AvailabilityTimeSlot`` rows with wall-clock
``HH:MM`` strings in the mentor's timezone. The booking core only reads
these tables; profile management writes them.
"""

import logging
from typing import Any, List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import MAX_SESSION_DURATION, MIN_SESSION_DURATION
from ..core.ids import generate_id
from ..database import Base
from ..domain.availability import (
    DayAvailability,
    TimeInterval,
    WeeklyAvailability,
    Weekday,
)
from .types import UTCDateTime

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DURATIONS = [30, 60]


class MentorProfile(Base):
    """
    Bookable mentor settings.

    ``booking_version`` is bumped inside every booking write for this mentor;
    the UPDATE takes a row lock (or the SQLite write lock) so concurrent
    writers for the same mentor run one at a time.
    """

    __tablename__ = "mentor_profiles"

    id = Column(String(24), primary_key=True, default=generate_id)
    user_id = Column(String(24), ForeignKey("users.id"), nullable=False, unique=True)
    display_name = Column(String(200), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    session_durations = Column(JSON, nullable=False, default=lambda: list(DEFAULT_SESSION_DURATIONS))
    is_accepting_bookings = Column(Boolean, nullable=False, default=True)

    # External calendar identity
    calcom_username = Column(String(255), nullable=True)
    calcom_event_type_id = Column(Integer, nullable=True)

    booking_version = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    user = relationship("User", back_populates="mentor_profile")
    availability_days = relationship(
        "WeeklyAvailabilityDay",
        back_populates="mentor_profile",
        cascade="all, delete-orphan",
        order_by="WeeklyAvailabilityDay.weekday",
    )

    __table_args__ = (CheckConstraint("hourly_rate > 0", name="ck_mentor_profiles_rate_positive"),)

    def get_session_durations(self) -> List[int]:
        durations = self.session_durations or DEFAULT_SESSION_DURATIONS
        return sorted(
            {int(d) for d in durations if MIN_SESSION_DURATION <= int(d) <= MAX_SESSION_DURATION}
        )

    def get_weekly_availability(self) -> WeeklyAvailability:
        weekly = WeeklyAvailability()
        for day in self.availability_days:
            weekly = weekly.with_day(Weekday(day.weekday), day.to_domain())
        return weekly

    def __repr__(self) -> str:
        return f"<MentorProfile {self.id}: user={self.user_id}, tz={self.timezone}>"


class WeeklyAvailabilityDay(Base):
    __tablename__ = "weekly_availability_days"

    id = Column(String(24), primary_key=True, default=generate_id)
    mentor_profile_id = Column(
        String(24), ForeignKey("mentor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    weekday = Column(Integer, nullable=False)
    is_available = Column(Boolean, nullable=False, default=False)

    mentor_profile = relationship("MentorProfile", back_populates="availability_days")
    time_slots = relationship(
        "AvailabilityTimeSlot",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="AvailabilityTimeSlot.position",
    )

    __table_args__ = (
        UniqueConstraint("mentor_profile_id", "weekday", name="uq_weekly_availability_day"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_weekly_availability_weekday"),
    )

    def to_domain(self) -> DayAvailability:
        return DayAvailability(
            is_available=bool(self.is_available),
            time_slots=tuple(
                TimeInterval(id=slot.id, start_time=slot.start_time, end_time=slot.end_time)
                for slot in self.time_slots
            ),
        )


class AvailabilityTimeSlot(Base):
    __tablename__ = "availability_time_slots"

    id = Column(String(24), primary_key=True, default=generate_id)
    day_id = Column(
        String(24), ForeignKey("weekly_availability_days.id", ondelete="CASCADE"), nullable=False
    )
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    day = relationship("WeeklyAvailabilityDay", back_populates="time_slots")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "start_time": self.start_time, "end_time": self.end_time}
