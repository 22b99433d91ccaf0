# backend/app/services/booking_service.py
"""
Booking Service for MentorMatch

Owns the booking lifecycle:

    pending_mentor_acceptance -> confirmed -> completed
                 \\________________\\_______-> cancelled

- create: validate, advisory conflict check, charge, then insert under the
  per-mentor write lock with a second conflict check; the PostgreSQL
  exclusion constraint backs both up
- cancel/decline: best-effort external cancel, local cancel, best-effort
  refund and notification
- reschedule: the external move must succeed before local state changes
- accept: only before the acceptance deadline; late accepts decline

External calendar and notification failures on create/cancel only degrade
the result. Payment failures and validation failures abort before anything
is written.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    ForbiddenException,
    InsufficientNoticeException,
    IntegrationException,
    NotFoundException,
    PaymentException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, local_today
from ..domain.availability import CandidateSlot
from ..models.booking import (
    NO_OVERLAP_CONSTRAINT,
    Booking,
    BookingStatus,
    CancelledBy,
    MeetingProvider,
    PaymentStatus,
    RefundStatus,
)
from ..models.mentor_profile import MentorProfile
from ..models.user import User, UserRole
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.mentor_profile_repository import MentorProfileRepository
from ..schemas.booking import BookingCreate, TimeSlotIn
from .base import BaseService
from .conflict_checker import ConflictChecker
from .external_calendar_service import ExternalCalendarService, generate_fallback_meeting_url
from .notification_service import NotificationService
from .payment_service import PaymentGateway
from .slot_generator import calculate_price

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = "This time slot is no longer available. Please choose another slot."
GENERIC_CONFLICT_MESSAGE = "This time slot conflicts with an existing booking"
AUTO_DECLINE_REASON = "Mentor did not accept within the required timeframe"


@dataclass
class SlotListing:
    slots: List[CandidateSlot]
    source: str
    reason: Optional[str] = None


@dataclass
class BookingPage:
    items: List[Booking]
    total: int
    page: int
    limit: int

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class SweepResult:
    processed: int = 0
    failed: List[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService(BaseService):
    """
    Service layer for the booking lifecycle.

    Collaborators are injectable so tests can swap the external calendar,
    payment gateway, notifier and clock.
    """

    def __init__(
        self,
        db: Session,
        *,
        calendar_service: Optional[ExternalCalendarService] = None,
        payment_gateway: Optional[PaymentGateway] = None,
        notification_service: Optional[NotificationService] = None,
        repository: Optional[BookingRepository] = None,
        profile_repository: Optional[MentorProfileRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.profile_repository = (
            profile_repository or RepositoryFactory.create_mentor_profile_repository(db)
        )
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.calendar_service = calendar_service or ExternalCalendarService(
            db, profile_repository=self.profile_repository
        )
        if payment_gateway is None:
            from .payment_service import build_payment_gateway

            payment_gateway = build_payment_gateway()
        self.payment_gateway = payment_gateway
        self.notification_service = notification_service or NotificationService()
        self._clock = clock

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    @property
    def min_lead_time(self) -> timedelta:
        return timedelta(hours=settings.min_lead_time_hours)

    # ── Availability ────────────────────────────────────────────────────

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, mentor_id: str, target_date: date) -> SlotListing:
        """
        Bookable slots for a mentor on a date, with booked windows removed.

        Raises:
            NotFoundException: unknown mentor
        """
        _, profile = self._get_mentor(mentor_id)
        result = self.calendar_service.fetch_availability(mentor_id, target_date, self._now())
        slots = self.conflict_checker.filter_conflicts(
            result.slots, mentor_id, target_date, profile.timezone
        )
        return SlotListing(slots=slots, source=result.source, reason=getattr(result, "reason", None))

    # ── Create ──────────────────────────────────────────────────────────

    @BaseService.measure_operation("create_booking")
    def create_booking(self, student_id: str, booking_data: BookingCreate) -> Booking:
        """
        Book a slot for a student.

        Args:
            student_id: The authenticated student
            booking_data: Mentor, chosen slot, subject and payment method

        Returns:
            The persisted booking, with meeting link and provider set

        Raises:
            ValidationException: bad subject, slot shape or payment method
            NotFoundException: mentor or student missing
            InsufficientNoticeException: slot starts inside the lead time
            BookingConflictException: slot not offered by the mentor or no longer free
            PaymentException: charge declined
        """
        # 1. Validate
        student = self._get_user(student_id, "Student")
        mentor, profile = self._get_mentor(booking_data.mentor_id)
        if student.id == mentor.id:
            raise ValidationException("You cannot book a session with yourself")
        subject = (booking_data.subject or "").strip()
        if len(subject) < 3:
            raise ValidationException("Subject must be at least 3 characters")
        if not (booking_data.payment_method_id or "").strip():
            raise ValidationException("Payment method is required")
        start, end, duration = self._validate_slot(booking_data.time_slot, profile)

        price = Decimal(calculate_price(profile.hourly_rate, duration))
        if Decimal(str(booking_data.time_slot.price)) != price:
            self.logger.info(
                "Client slot price differs from server price",
                extra={"client_price": booking_data.time_slot.price, "server_price": str(price)},
            )

        # 2. Advisory re-check against current bookings
        if self.conflict_checker.has_conflict(mentor.id, start, end):
            prometheus_metrics.record_booking_conflict("precheck")
            raise BookingConflictException(SLOT_UNAVAILABLE_MESSAGE, details=self._conflict_details(mentor.id, start, end))

        # 3. Payment
        charge = self.payment_gateway.charge(
            price,
            profile.currency,
            booking_data.payment_method_id,
            description=f"Mentoring session: {subject}",
        )
        if not charge.success:
            raise PaymentException(charge.error or "Payment failed")

        # 4. Persist under the mentor write lock
        now = self._now()
        require_acceptance = settings.require_mentor_acceptance
        try:
            booking = self._insert_booking(
                mentor_id=mentor.id,
                student_id=student.id,
                scheduled_time=start,
                end_time=end,
                duration=duration,
                subject=subject,
                notes=booking_data.notes,
                session_type=booking_data.time_slot.session_type or settings.session_type,
                status=(
                    BookingStatus.PENDING_MENTOR_ACCEPTANCE.value
                    if require_acceptance
                    else BookingStatus.CONFIRMED.value
                ),
                price=price,
                currency=profile.currency,
                payment_id=charge.payment_id,
                payment_status=PaymentStatus.COMPLETED.value,
                auto_decline_at=(
                    min(now + timedelta(hours=settings.mentor_acceptance_window_hours), start)
                    if require_acceptance
                    else None
                ),
            )
        except Exception:
            self._refund_charge(charge.payment_id, price, context="booking not persisted")
            raise

        self.logger.info(
            "Booking created",
            extra={"booking_id": booking.id, "mentor_id": mentor.id, "student_id": student.id},
        )

        # 5. External calendar booking, falling back to a placeholder link
        self._attach_meeting(booking, mentor, student)

        # 6. Notify
        self.notification_service.send_booking_confirmation(booking, student, mentor)
        return booking

    def _insert_booking(self, **fields: Any) -> Booking:
        mentor_id = fields["mentor_id"]
        start, end = fields["scheduled_time"], fields["end_time"]
        try:
            with self.transaction():
                self.repository.lock_mentor_schedule(mentor_id)
                if self.conflict_checker.has_conflict(mentor_id, start, end):
                    prometheus_metrics.record_booking_conflict("locked_recheck")
                    raise BookingConflictException(
                        SLOT_UNAVAILABLE_MESSAGE, details=self._conflict_details(mentor_id, start, end)
                    )
                booking = self.repository.create(**fields)
        except IntegrityError as exc:
            prometheus_metrics.record_booking_conflict("constraint")
            message, scope = self._resolve_integrity_conflict_message(exc)
            details = self._conflict_details(mentor_id, start, end)
            if scope:
                details["conflict_scope"] = scope
            raise BookingConflictException(message, details=details) from exc
        return booking

    def _attach_meeting(self, booking: Booking, mentor: User, student: User) -> None:
        result = self.calendar_service.create_booking(
            mentor=mentor,
            student=student,
            start=booking.scheduled_time,
            end=booking.end_time,
            subject=booking.subject,
            notes=booking.notes,
        )
        if not result.success:
            self.logger.warning(
                f"External calendar booking failed for {booking.id}, using fallback link: {result.error}"
            )
        try:
            with self.transaction():
                if result.success:
                    booking.external_booking_id = result.external_booking_id
                    booking.meeting_url = result.meeting_url
                    booking.meeting_provider = MeetingProvider.EXTERNAL_CALENDAR.value
                else:
                    booking.meeting_url = generate_fallback_meeting_url(booking.id)
                    booking.meeting_provider = MeetingProvider.FALLBACK.value
        except Exception as exc:
            self.logger.error(f"Failed to store meeting details for booking {booking.id}: {str(exc)}")

    # ── Cancel / decline ────────────────────────────────────────────────

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, actor_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking on behalf of its student or mentor.

        Raises:
            NotFoundException: unknown booking
            ForbiddenException: actor is not a party
            BusinessRuleException: booking already completed or cancelled
        """
        booking, role = self._get_booking_for_party(booking_id, actor_id)
        if not booking.is_cancellable:
            raise BusinessRuleException(
                f"Booking cannot be cancelled in its current state ({booking.status})",
                code="INVALID_STATE",
            )
        self._finalize_cancellation(booking, role, reason or "Cancelled by user", notify="cancellation")
        return booking

    @BaseService.measure_operation("decline_booking")
    def decline_booking(self, booking_id: str, actor_id: str, reason: Optional[str] = None) -> Booking:
        """Mentor declines a pending booking; refunds like a cancellation."""
        booking, role = self._get_booking_for_party(booking_id, actor_id)
        if role != CancelledBy.MENTOR.value:
            raise ForbiddenException("Only the mentor can decline this booking")
        if booking.status != BookingStatus.PENDING_MENTOR_ACCEPTANCE.value:
            raise BusinessRuleException(
                "Only bookings awaiting acceptance can be declined", code="INVALID_STATE"
            )
        self._finalize_cancellation(booking, role, reason or "Declined by mentor", notify="decline")
        return booking

    def _finalize_cancellation(self, booking: Booking, cancelled_by: str, reason: str, *, notify: str) -> None:
        # Phase 1: external calendar, best effort
        if booking.external_booking_id:
            if not self.calendar_service.cancel_booking(booking.external_booking_id, reason):
                self.logger.warning(f"External cancel failed for booking {booking.id}; continuing")

        # Phase 2: local state
        with self.transaction():
            booking.cancel(cancelled_by, reason)

        # Phase 3: refund, best effort
        self._refund_booking(booking)

        # Phase 4: notify
        parties = self._notification_parties(booking)
        if parties is None:
            return
        student, mentor = parties
        if notify == "decline":
            self.notification_service.send_decline_notification(booking, student, mentor)
        else:
            self.notification_service.send_cancellation_notification(booking, student, mentor, cancelled_by)

    def _refund_booking(self, booking: Booking) -> None:
        if not booking.payment_id or booking.payment_status != PaymentStatus.COMPLETED.value:
            return
        try:
            result = self.payment_gateway.refund(booking.payment_id, booking.price)
        except Exception as exc:
            self.logger.error(f"Refund raised for booking {booking.id}: {str(exc)}")
            result = None

        try:
            with self.transaction():
                if result is not None and result.success:
                    booking.refund_id = result.refund_id
                    booking.refund_status = RefundStatus.PROCESSED.value
                    booking.payment_status = PaymentStatus.REFUNDED.value
                else:
                    booking.refund_status = RefundStatus.FAILED.value
                    self.logger.error(
                        f"Refund failed for booking {booking.id}: "
                        f"{result.error if result is not None else 'gateway error'}"
                    )
        except Exception as exc:
            self.logger.error(f"Failed to record refund for booking {booking.id}: {str(exc)}")

    def _refund_charge(self, payment_id: Optional[str], amount: Decimal, *, context: str) -> None:
        if not payment_id:
            return
        try:
            result = self.payment_gateway.refund(payment_id, amount)
            if not result.success:
                self.logger.error(f"Refund of {payment_id} failed ({context}): {result.error}")
        except Exception as exc:
            self.logger.error(f"Refund of {payment_id} raised ({context}): {str(exc)}")

    # ── Reschedule ──────────────────────────────────────────────────────

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(self, booking_id: str, actor_id: str, new_slot: TimeSlotIn) -> Booking:
        """
        Move a booking to a new slot.

        The external calendar is moved first; if that fails nothing changes
        locally and IntegrationException is raised. The new slot must keep
        the booked duration.
        """
        booking, _ = self._get_booking_for_party(booking_id, actor_id)
        if not booking.is_cancellable:
            raise BusinessRuleException(
                f"Booking cannot be rescheduled in its current state ({booking.status})",
                code="INVALID_STATE",
            )
        # The charged price covers the booked length only
        if new_slot.duration != booking.duration:
            raise ValidationException(
                "Rescheduling cannot change the session duration",
                details={"duration": booking.duration, "requested": new_slot.duration},
            )
        _, profile = self._get_mentor(booking.mentor_id)
        start, end, duration = self._validate_slot(new_slot, profile)

        if self.conflict_checker.has_conflict(booking.mentor_id, start, end, exclude_booking_id=booking.id):
            prometheus_metrics.record_booking_conflict("precheck")
            raise BookingConflictException(
                SLOT_UNAVAILABLE_MESSAGE, details=self._conflict_details(booking.mentor_id, start, end)
            )

        old_start, old_end = booking.scheduled_time, booking.end_time
        moved_remotely = False
        if booking.external_booking_id:
            if not self.calendar_service.reschedule_booking(booking.external_booking_id, start, end):
                raise IntegrationException(
                    "Could not reschedule the session in the external calendar. Please try again.",
                    details={"booking_id": booking.id},
                )
            moved_remotely = True

        try:
            with self.transaction():
                self.repository.lock_mentor_schedule(booking.mentor_id)
                if self.conflict_checker.has_conflict(
                    booking.mentor_id, start, end, exclude_booking_id=booking.id
                ):
                    prometheus_metrics.record_booking_conflict("locked_recheck")
                    raise BookingConflictException(
                        SLOT_UNAVAILABLE_MESSAGE,
                        details=self._conflict_details(booking.mentor_id, start, end),
                    )
                booking.move_to(start, duration)
        except IntegrityError as exc:
            prometheus_metrics.record_booking_conflict("constraint")
            message, _ = self._resolve_integrity_conflict_message(exc)
            self._revert_remote_move(booking, moved_remotely, old_start, old_end)
            raise BookingConflictException(message) from exc
        except Exception:
            self._revert_remote_move(booking, moved_remotely, old_start, old_end)
            raise

        parties = self._notification_parties(booking)
        if parties is not None:
            self.notification_service.send_reschedule_notification(booking, *parties)
        return booking

    def _revert_remote_move(
        self, booking: Booking, moved_remotely: bool, old_start: datetime, old_end: datetime
    ) -> None:
        if not moved_remotely or not booking.external_booking_id:
            return
        if not self.calendar_service.reschedule_booking(booking.external_booking_id, old_start, old_end):
            self.logger.error(
                f"Booking {booking.id} could not be moved back in the external calendar; manual fix needed"
            )

    # ── Accept ──────────────────────────────────────────────────────────

    @BaseService.measure_operation("accept_booking")
    def accept_booking(self, booking_id: str, actor_id: str, meeting_url: Optional[str] = None) -> Booking:
        """
        Mentor accepts a pending booking.

        Raises:
            BusinessRuleException: not pending, or the acceptance deadline
                passed (the booking is declined as a side effect)
            ValidationException: no meeting URL available
        """
        booking, role = self._get_booking_for_party(booking_id, actor_id)
        if role != CancelledBy.MENTOR.value:
            raise ForbiddenException("Only the mentor can accept this booking")
        if booking.status != BookingStatus.PENDING_MENTOR_ACCEPTANCE.value:
            raise BusinessRuleException(
                "Only bookings awaiting acceptance can be accepted", code="INVALID_STATE"
            )

        if booking.is_acceptance_expired(self._now()):
            self._finalize_cancellation(
                booking, CancelledBy.SYSTEM.value, AUTO_DECLINE_REASON, notify="decline"
            )
            raise BusinessRuleException(
                "The acceptance window for this booking has expired",
                code="ACCEPTANCE_EXPIRED",
                details={"booking_id": booking.id},
            )

        url = meeting_url or booking.meeting_url
        if not url:
            raise ValidationException("A meeting URL is required to accept this booking")

        with self.transaction():
            if meeting_url and meeting_url != booking.meeting_url:
                booking.meeting_provider = MeetingProvider.MANUAL.value
            booking.confirm(url)

        parties = self._notification_parties(booking)
        if parties is not None:
            self.notification_service.send_session_acceptance_notification(booking, *parties)
        return booking

    # ── Ratings and reads ───────────────────────────────────────────────

    @BaseService.measure_operation("rate_session")
    def rate_session(
        self, booking_id: str, actor_id: str, rating: int, review: Optional[str] = None
    ) -> Booking:
        booking, role = self._get_booking_for_party(booking_id, actor_id)
        if booking.status != BookingStatus.COMPLETED.value:
            raise BusinessRuleException("Only completed sessions can be rated", code="INVALID_STATE")
        if not 1 <= rating <= 5:
            raise ValidationException("Rating must be between 1 and 5")
        if review and len(review) > 1000:
            raise ValidationException("Review must be at most 1000 characters")

        is_student = role == CancelledBy.STUDENT.value
        existing = booking.student_rating if is_student else booking.mentor_rating
        if existing is not None:
            raise BusinessRuleException("You have already rated this session", code="ALREADY_RATED")

        with self.transaction():
            if is_student:
                booking.student_rating = rating
                booking.student_review = review
            else:
                booking.mentor_rating = rating
                booking.mentor_review = review
        return booking

    def get_booking(self, booking_id: str, actor_id: str) -> Booking:
        booking, _ = self._get_booking_for_party(booking_id, actor_id)
        return booking

    @BaseService.measure_operation("list_user_bookings")
    def list_user_bookings(
        self, user_id: str, status: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> BookingPage:
        if page < 1:
            raise ValidationException("page must be at least 1")
        if not 1 <= limit <= 100:
            raise ValidationException("limit must be between 1 and 100")

        offset = (page - 1) * limit
        kwargs: Dict[str, Any] = {"offset": offset, "limit": limit}
        if status == "upcoming":
            kwargs.update(
                statuses=[BookingStatus.PENDING_MENTOR_ACCEPTANCE.value, BookingStatus.CONFIRMED.value],
                starts_after=self._now(),
                newest_first=False,
            )
        elif status == "completed":
            kwargs.update(statuses=[BookingStatus.COMPLETED.value])
        elif status == "cancelled":
            kwargs.update(statuses=[BookingStatus.CANCELLED.value])
        elif status is not None:
            raise ValidationException("status must be one of upcoming, completed, cancelled")

        items, total = self.repository.list_for_user(user_id, **kwargs)
        return BookingPage(items=items, total=total, page=page, limit=limit)

    # ── Sweeps (driven by background jobs) ──────────────────────────────

    def auto_decline_expired_bookings(self) -> SweepResult:
        result = SweepResult()
        for booking in self.repository.get_expired_pending(self._now()):
            try:
                self._finalize_cancellation(
                    booking, CancelledBy.SYSTEM.value, AUTO_DECLINE_REASON, notify="decline"
                )
                result.processed += 1
            except Exception as exc:
                self.logger.error(f"Auto-decline failed for booking {booking.id}: {str(exc)}")
                result.failed.append(booking.id)
        return result

    def mark_completed_bookings(self) -> SweepResult:
        result = SweepResult()
        bookings = self.repository.get_due_for_completion(self._now())
        if not bookings:
            return result
        with self.transaction():
            for booking in bookings:
                booking.complete()
                result.processed += 1
        return result

    def find_sessions_missing_meeting_link(self, window_minutes: int = 30) -> List[Booking]:
        bookings = self.repository.get_starting_soon_without_link(self._now(), window_minutes)
        for booking in bookings:
            self.logger.warning(
                "Session starting soon without a meeting link",
                extra={"booking_id": booking.id, "scheduled_time": booking.scheduled_time.isoformat()},
            )
        return bookings

    # ── Helpers ─────────────────────────────────────────────────────────

    def _get_user(self, user_id: str, label: str) -> User:
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None or not user.is_active:
            raise NotFoundException(f"{label} not found", code=f"{label.upper()}_NOT_FOUND")
        return user

    def _notification_parties(self, booking: Booking) -> Optional[Tuple[User, User]]:
        """
        Student and mentor rows for a notification, active or not.

        Runs after the state change has committed, so a missing account
        only skips the email.
        """
        student = self.user_repository.get_by_id(booking.student_id, load_relationships=False)
        mentor = self.user_repository.get_by_id(booking.mentor_id, load_relationships=False)
        if student is None or mentor is None:
            self.logger.warning(f"Skipping notifications for booking {booking.id}: participant account missing")
            return None
        return student, mentor

    def _get_mentor(self, mentor_id: str) -> Tuple[User, MentorProfile]:
        mentor = self._get_user(mentor_id, "Mentor")
        profile = self.profile_repository.get_by_user_id(mentor_id)
        if mentor.role != UserRole.MENTOR.value or profile is None:
            raise NotFoundException("Mentor not found", code="MENTOR_NOT_FOUND")
        return mentor, profile

    def _get_booking_for_party(self, booking_id: str, actor_id: str) -> Tuple[Booking, str]:
        booking = self.repository.get_by_id(booking_id, load_relationships=False)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        role = booking.party_role(actor_id)
        if role is None:
            raise ForbiddenException("You are not a participant in this booking")
        return booking, role

    def _validate_slot(self, slot: TimeSlotIn, profile: MentorProfile) -> Tuple[datetime, datetime, int]:
        start = ensure_utc(slot.start_time)
        end = ensure_utc(slot.end_time)
        if start >= end:
            raise ValidationException("Slot start must be before its end")
        duration = int((end - start).total_seconds() // 60)
        if duration != slot.duration:
            raise ValidationException(
                "Slot duration does not match its start and end times",
                details={"duration": slot.duration, "computed": duration},
            )
        allowed = profile.get_session_durations()
        if duration not in allowed:
            raise ValidationException(
                f"Invalid duration {duration}. Available options: {allowed}",
                details={"allowed_durations": allowed},
            )
        now = self._now()
        if start < now + self.min_lead_time:
            hours = (start - now).total_seconds() / 3600
            raise InsufficientNoticeException(settings.min_lead_time_hours, max(hours, 0.0))

        # The window must be one the mentor's calendar actually offers
        offered = self.calendar_service.fetch_availability(
            profile.user_id, local_today(start, profile.timezone), now
        )
        if not any(
            candidate.start_time == start and candidate.duration == duration
            for candidate in offered.slots
        ):
            prometheus_metrics.record_booking_conflict("not_offered")
            details = self._conflict_details(profile.user_id, start, end)
            details["availability_source"] = offered.source
            raise BookingConflictException(SLOT_UNAVAILABLE_MESSAGE, details=details)
        return start, end, duration

    @staticmethod
    def _conflict_details(mentor_id: str, start: datetime, end: datetime) -> Dict[str, Any]:
        return {
            "mentor_id": mentor_id,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
        }

    def _resolve_integrity_conflict_message(
        self, integrity_error: IntegrityError
    ) -> Tuple[str, Optional[str]]:
        """Determine the conflict message and scope from a database IntegrityError."""
        constraint_name: str = ""
        orig = getattr(integrity_error, "orig", None)
        diag = getattr(orig, "diag", None)

        if diag is not None:
            constraint_name = getattr(diag, "constraint_name", "") or ""

        if not constraint_name and orig is not None and NO_OVERLAP_CONSTRAINT in str(orig):
            constraint_name = NO_OVERLAP_CONSTRAINT

        if constraint_name == NO_OVERLAP_CONSTRAINT:
            return SLOT_UNAVAILABLE_MESSAGE, "mentor"
        return GENERIC_CONFLICT_MESSAGE, None
