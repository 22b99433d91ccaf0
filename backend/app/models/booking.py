# backend/app/models/booking.py
"""
Booking (session) model for MentorMatch.

A booking is the durable reservation of a time window with a mentor.
``scheduled_time`` and ``end_time`` are UTC instants; ``end_time`` is kept
alongside ``duration`` so overlap checks and the PostgreSQL exclusion
constraint work on a plain ``[scheduled_time, end_time)`` range.

Invariant: for one mentor, no two non-cancelled bookings overlap.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ids import generate_id
from ..core.timezone_utils import ensure_utc, to_iso_utc
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)

NO_OVERLAP_CONSTRAINT = "bookings_no_overlap_per_mentor"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING_MENTOR_ACCEPTANCE = "pending_mentor_acceptance"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = (BookingStatus.PENDING_MENTOR_ACCEPTANCE.value, BookingStatus.CONFIRMED.value)


class MeetingProvider(str, Enum):
    EXTERNAL_CALENDAR = "external-calendar"
    MANUAL = "manual"
    FALLBACK = "fallback"


class CancelledBy(str, Enum):
    STUDENT = "student"
    MENTOR = "mentor"
    SYSTEM = "system"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class Booking(Base):
    """
    Committed reservation between a student and a mentor.

    Price, currency and duration are snapshotted at booking time.
    """

    __tablename__ = "bookings"

    id = Column(String(24), primary_key=True, default=generate_id)

    mentor_id = Column(String(24), ForeignKey("users.id"), nullable=False)
    student_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)

    scheduled_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    duration = Column(Integer, nullable=False)

    subject = Column(String(200), nullable=False)
    notes = Column(Text, nullable=True)
    session_type = Column(String(20), nullable=False, default="video")

    status = Column(
        String(32), nullable=False, default=BookingStatus.PENDING_MENTOR_ACCEPTANCE.value, index=True
    )

    # Payment snapshot
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    payment_id = Column(String(255), nullable=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    refund_id = Column(String(255), nullable=True)
    refund_status = Column(String(20), nullable=True)

    # Meeting
    meeting_url = Column(String(500), nullable=True)
    meeting_provider = Column(String(32), nullable=True)
    external_booking_id = Column(String(255), nullable=True)

    # Acceptance flow
    auto_decline_at = Column(UTCDateTime, nullable=True)
    mentor_accepted_at = Column(UTCDateTime, nullable=True)

    # Cancellation tracking
    cancellation_reason = Column(String(500), nullable=True)
    cancelled_by = Column(String(20), nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    completed_at = Column(UTCDateTime, nullable=True)

    # Feedback
    student_rating = Column(Integer, nullable=True)
    student_review = Column(Text, nullable=True)
    mentor_rating = Column(Integer, nullable=True)
    mentor_review = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    mentor = relationship("User", foreign_keys=[mentor_id])
    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending_mentor_acceptance', 'confirmed', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "meeting_provider IS NULL OR meeting_provider IN ('external-calendar', 'manual', 'fallback')",
            name="ck_bookings_meeting_provider",
        ),
        CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('student', 'mentor', 'system')",
            name="ck_bookings_cancelled_by",
        ),
        CheckConstraint("duration BETWEEN 15 AND 180", name="check_duration_range"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("scheduled_time < end_time", name="check_time_order"),
        CheckConstraint(
            "student_rating IS NULL OR student_rating BETWEEN 1 AND 5", name="ck_bookings_student_rating"
        ),
        CheckConstraint(
            "mentor_rating IS NULL OR mentor_rating BETWEEN 1 AND 5", name="ck_bookings_mentor_rating"
        ),
        Index("ix_bookings_mentor_schedule", "mentor_id", "scheduled_time"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.scheduled_time is not None and self.duration and self.end_time is None:
            self.end_time = self.scheduled_time + timedelta(minutes=int(self.duration))
        if not self.status:
            self.status = BookingStatus.PENDING_MENTOR_ACCEPTANCE.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: mentor={self.mentor_id}, student={self.student_id}, "
            f"start={self.scheduled_time}, duration={self.duration}, status={self.status}>"
        )

    def party_role(self, user_id: str) -> Optional[str]:
        """Return ``student``/``mentor`` for a party to this booking, else None."""
        if user_id == self.student_id:
            return CancelledBy.STUDENT.value
        if user_id == self.mentor_id:
            return CancelledBy.MENTOR.value
        return None

    @property
    def is_cancellable(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def is_acceptance_expired(self, now: datetime) -> bool:
        return self.auto_decline_at is not None and ensure_utc(now) >= ensure_utc(self.auto_decline_at)

    def cancel(self, cancelled_by: str, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {cancelled_by}")

    def confirm(self, meeting_url: str) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.meeting_url = meeting_url
        self.mentor_accepted_at = datetime.now(timezone.utc)
        if not self.meeting_provider:
            self.meeting_provider = MeetingProvider.MANUAL.value

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def move_to(self, start: datetime, duration: int) -> None:
        self.scheduled_time = ensure_utc(start)
        self.duration = duration
        self.end_time = self.scheduled_time + timedelta(minutes=duration)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""

        def _iso(value: Optional[datetime]) -> Optional[str]:
            return to_iso_utc(value) if value else None

        return {
            "id": self.id,
            "mentor_id": self.mentor_id,
            "student_id": self.student_id,
            "scheduled_time": _iso(self.scheduled_time),
            "end_time": _iso(self.end_time),
            "duration": self.duration,
            "subject": self.subject,
            "notes": self.notes,
            "session_type": self.session_type,
            "status": self.status,
            "price": float(self.price) if self.price is not None else None,
            "currency": self.currency,
            "payment_id": self.payment_id,
            "payment_status": self.payment_status,
            "refund_id": self.refund_id,
            "refund_status": self.refund_status,
            "meeting_url": self.meeting_url,
            "meeting_provider": self.meeting_provider,
            "external_booking_id": self.external_booking_id,
            "auto_decline_at": _iso(self.auto_decline_at),
            "mentor_accepted_at": _iso(self.mentor_accepted_at),
            "cancellation_reason": self.cancellation_reason,
            "cancelled_by": self.cancelled_by,
            "cancelled_at": _iso(self.cancelled_at),
            "completed_at": _iso(self.completed_at),
            "student_rating": self.student_rating,
            "student_review": self.student_review,
            "mentor_rating": self.mentor_rating,
            "mentor_review": self.mentor_review,
            "created_at": _iso(self.created_at),
        }


# PostgreSQL-only storage guarantee against overlapping active bookings.
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        "CREATE EXTENSION IF NOT EXISTS btree_gist; "
        f"ALTER TABLE bookings ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (mentor_id WITH =, "
        "tstzrange(scheduled_time, end_time, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
