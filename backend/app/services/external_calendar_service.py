# backend/app/services/external_calendar_service.py
"""
External calendar adapter.

Wraps the Cal.com client with the booking core's failure rules:

- availability never raises; remote failures resolve to ``FallbackSlots``
  generated locally from the mentor's weekly schedule
- a mentor without a remote event type gets one provisioned lazily with
  the weekly schedule pushed, and that first lookup returns an empty
  ``RemoteSlots``; a periodic task re-pushes every linked schedule
- booking creation returns an ``ExternalBookingResult`` instead of raising
- cancel and reschedule report success as a bool
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
import logging
import secrets
import string
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timezone_utils import ensure_utc, local_to_utc, to_iso_utc
from ..domain.availability import (
    AvailabilityResult,
    CandidateSlot,
    FallbackSlots,
    RemoteSlots,
    Unavailable,
    WeeklyAvailability,
    Weekday,
)
from ..integrations.calcom_client import CalComClient, CalComError
from ..models.mentor_profile import MentorProfile
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.mentor_profile_repository import MentorProfileRepository
from .base import BaseService
from .slot_generator import LoggingSlotObserver, calculate_price, generate_slots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalBookingResult:
    success: bool
    external_booking_id: Optional[str] = None
    meeting_url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class AvailabilitySyncResult:
    synced: int = 0
    failed: List[str] = field(default_factory=list)


def event_type_slug(mentor_id: str) -> str:
    return f"mentor-{mentor_id}"


def remote_slot_id(mentor_id: str, start: datetime) -> str:
    return f"calcom-{mentor_id}-{int(ensure_utc(start).timestamp() * 1000)}"


def generate_meeting_code() -> str:
    """Random ``abc-defg-hij`` style meeting code."""
    letters = [secrets.choice(string.ascii_lowercase) for _ in range(10)]
    return f"{''.join(letters[:3])}-{''.join(letters[3:7])}-{''.join(letters[7:])}"


def generate_fallback_meeting_url(booking_id: str) -> str:
    """Placeholder join link used when the external calendar gives us none."""
    return f"https://meet.google.com/{generate_meeting_code()}-{booking_id[-6:]}"


def weekly_schedule_to_calcom(weekly: WeeklyAvailability) -> List[Dict[str, Any]]:
    """Flatten a weekly schedule into Cal.com availability blocks."""
    blocks: List[Dict[str, Any]] = []
    for weekday in Weekday:
        day = weekly.for_day(weekday)
        if not day.is_available:
            continue
        for interval in day.time_slots:
            blocks.append(
                {"days": [int(weekday)], "startTime": interval.start_time, "endTime": interval.end_time}
            )
    return blocks


class ExternalCalendarService(BaseService):
    """Adapter between the booking core and the external scheduling service."""

    def __init__(
        self,
        db: Session,
        client: Optional[CalComClient] = None,
        profile_repository: Optional[MentorProfileRepository] = None,
    ):
        super().__init__(db)
        self.client = client
        self.profile_repository = (
            profile_repository or RepositoryFactory.create_mentor_profile_repository(db)
        )

    # ── Availability ────────────────────────────────────────────────────

    @BaseService.measure_operation("fetch_availability")
    def fetch_availability(
        self, mentor_id: str, target_date: date, now: Optional[datetime] = None
    ) -> AvailabilityResult:
        """
        Resolve a mentor's slots for ``target_date`` to one availability variant.

        Returns:
            RemoteSlots when the external calendar answered, FallbackSlots
            when it could not, Unavailable when the mentor cannot be booked
        """
        now = ensure_utc(now or datetime.now(timezone.utc))
        profile = self.profile_repository.get_by_user_id(mentor_id)
        if profile is None:
            return self._record(Unavailable(reason="Mentor profile not found"))
        if not profile.is_accepting_bookings:
            return self._record(Unavailable(reason="Mentor is not accepting bookings"))

        if self.client is None:
            return self._record(
                FallbackSlots(
                    slots=self.generate_local_slots(profile, target_date, now),
                    reason="External calendar not configured",
                )
            )

        try:
            event_type, provisioned = self._ensure_event_type(profile)
            if provisioned:
                # Slots show up on the next lookup once the remote side has the schedule
                return self._record(RemoteSlots(slots=[]))
            days = self.client.get_availability(
                int(event_type["id"]), target_date.isoformat(), target_date.isoformat()
            )
            slots = self._normalize_remote_slots(profile, event_type, days, target_date, now)
            return self._record(RemoteSlots(slots=slots))
        except (CalComError, KeyError, TypeError, ValueError) as exc:
            reason = getattr(exc, "message", None) or str(exc)
            self.logger.warning(
                "External availability failed, using weekly schedule",
                extra={"mentor_id": mentor_id, "date": target_date.isoformat(), "reason": reason},
            )
            prometheus_metrics.record_external_calendar_failure("availability")
            return self._record(
                FallbackSlots(slots=self.generate_local_slots(profile, target_date, now), reason=reason)
            )

    def get_available_slots(
        self, mentor_id: str, target_date: date, now: Optional[datetime] = None
    ) -> List[CandidateSlot]:
        return self.fetch_availability(mentor_id, target_date, now).slots

    def generate_local_slots(
        self, profile: MentorProfile, target_date: date, now: datetime
    ) -> List[CandidateSlot]:
        return generate_slots(
            profile.get_weekly_availability(),
            target_date,
            profile.get_session_durations(),
            profile.hourly_rate,
            now,
            mentor_id=profile.user_id,
            tz_name=profile.timezone,
            session_type=settings.session_type,
            min_lead_time=timedelta(hours=settings.min_lead_time_hours),
            observer=LoggingSlotObserver(profile.user_id),
        )

    @staticmethod
    def _record(result: AvailabilityResult) -> AvailabilityResult:
        prometheus_metrics.record_availability_source(result.source)
        return result

    def _ensure_event_type(self, profile: MentorProfile) -> tuple[Dict[str, Any], bool]:
        """
        Look up the mentor's event type, creating it when missing.

        A newly created event type gets the weekly schedule pushed right
        away.

        Returns:
            (event type payload, whether it was created by this call)

        Raises:
            CalComError: no client configured, or the remote call failed
        """
        if self.client is None:
            raise CalComError("External calendar not configured")
        event_type = self.client.find_event_type(event_type_slug(profile.user_id))
        if event_type is not None:
            if profile.calcom_event_type_id != event_type.get("id"):
                self.profile_repository.set_event_type_id(profile, int(event_type["id"]))
            return event_type, False

        durations = profile.get_session_durations()
        length = durations[0] if durations else 60
        display_name = profile.display_name or (profile.user.full_name if profile.user else "Mentor")
        created = self.client.create_event_type(
            {
                "title": f"Mentoring Session with {display_name}",
                "slug": event_type_slug(profile.user_id),
                "length": length,
                "price": calculate_price(profile.hourly_rate, 60),
                "currency": profile.currency,
                "metadata": {"mentorId": profile.user_id, "mentorName": display_name},
            }
        )
        self.profile_repository.set_event_type_id(profile, int(created["id"]))
        self.logger.info(f"Provisioned external event type for mentor {profile.user_id}")
        self._push_schedule(profile, int(created["id"]))
        return created, True

    def _push_schedule(self, profile: MentorProfile, event_type_id: int) -> None:
        if self.client is None:
            raise CalComError("External calendar not configured")
        self.client.update_event_type(
            event_type_id,
            {"availability": weekly_schedule_to_calcom(profile.get_weekly_availability())},
        )

    def _normalize_remote_slots(
        self,
        profile: MentorProfile,
        event_type: Dict[str, Any],
        days: List[Dict[str, Any]],
        target_date: date,
        now: datetime,
    ) -> List[CandidateSlot]:
        if not isinstance(days, list) or not all(isinstance(d, dict) for d in days):
            raise CalComError("Malformed availability payload", details=days)
        day = next((d for d in days if d.get("date") == target_date.isoformat()), None)
        if not day or not day.get("slots"):
            return []
        raw_slots = day["slots"]
        if not isinstance(raw_slots, list) or not all(
            isinstance(raw, dict) and isinstance(raw.get("time"), str) for raw in raw_slots
        ):
            raise CalComError("Malformed availability slots", details=raw_slots)

        durations = profile.get_session_durations()
        duration = int(event_type.get("length") or (durations[0] if durations else 60))
        earliest = now + timedelta(hours=settings.min_lead_time_hours)

        slots: List[CandidateSlot] = []
        for raw in raw_slots:
            start = self._parse_remote_time(raw["time"], target_date, profile.timezone)
            if start < earliest:
                continue
            slots.append(
                CandidateSlot(
                    id=remote_slot_id(profile.user_id, start),
                    start_time=start,
                    end_time=start + timedelta(minutes=duration),
                    date=target_date,
                    duration=duration,
                    price=calculate_price(profile.hourly_rate, duration),
                    session_type=settings.session_type,
                    is_available=True,
                )
            )
        slots.sort(key=lambda slot: (slot.start_time, slot.duration))
        return slots

    @staticmethod
    def _parse_remote_time(value: str, target_date: date, tz_name: Optional[str]) -> datetime:
        """Remote times are full ISO instants or ``HH:MM[:SS]`` in the mentor's timezone."""
        if "T" in value:
            return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        parts = [int(p) for p in value.split(":")]
        return local_to_utc(target_date, time(parts[0], parts[1] if len(parts) > 1 else 0), tz_name)

    # ── Bookings ────────────────────────────────────────────────────────

    @BaseService.measure_operation("external_create_booking")
    def create_booking(
        self,
        *,
        mentor: User,
        student: User,
        start: datetime,
        end: datetime,
        subject: str,
        notes: Optional[str] = None,
    ) -> ExternalBookingResult:
        """Create the remote booking. Failures come back as ``success=False``."""
        if self.client is None:
            return ExternalBookingResult(success=False, error="External calendar not configured")
        try:
            event_type = self.client.find_event_type(event_type_slug(mentor.id))
            if event_type is None:
                return ExternalBookingResult(success=False, error="Event type not found for mentor")
            booking = self.client.create_booking(
                {
                    "eventTypeId": event_type["id"],
                    "start": to_iso_utc(start),
                    "end": to_iso_utc(end),
                    "responses": {
                        "name": student.full_name,
                        "email": student.email,
                        "notes": notes or "",
                        "subject": subject,
                    },
                    "metadata": {"mentorId": mentor.id, "studentId": student.id, "subject": subject},
                    "timeZone": "UTC",
                    "language": "en",
                }
            )
            external_id = str(booking["id"])
            meeting_url = booking.get("meetingUrl") or booking.get("videoCallUrl")
            return ExternalBookingResult(
                success=True,
                external_booking_id=external_id,
                meeting_url=meeting_url or generate_fallback_meeting_url(external_id),
            )
        except CalComError as exc:
            prometheus_metrics.record_external_calendar_failure("create_booking")
            self.logger.warning(f"External booking creation failed for mentor {mentor.id}: {exc.message}")
            return ExternalBookingResult(success=False, error=exc.message)
        except (KeyError, TypeError, ValueError) as exc:
            prometheus_metrics.record_external_calendar_failure("create_booking")
            self.logger.warning(f"Unexpected external booking payload for mentor {mentor.id}: {exc}")
            return ExternalBookingResult(success=False, error="Booking creation failed")

    def cancel_booking(self, external_booking_id: str, reason: Optional[str] = None) -> bool:
        if self.client is None:
            return False
        try:
            self.client.cancel_booking(external_booking_id, reason)
            return True
        except CalComError as exc:
            prometheus_metrics.record_external_calendar_failure("cancel_booking")
            self.logger.warning(f"External cancel failed for {external_booking_id}: {exc.message}")
            return False

    def reschedule_booking(self, external_booking_id: str, new_start: datetime, new_end: datetime) -> bool:
        if self.client is None:
            return False
        try:
            self.client.reschedule_booking(
                external_booking_id, to_iso_utc(new_start), to_iso_utc(new_end)
            )
            return True
        except CalComError as exc:
            prometheus_metrics.record_external_calendar_failure("reschedule_booking")
            self.logger.warning(f"External reschedule failed for {external_booking_id}: {exc.message}")
            return False

    @BaseService.measure_operation("sync_mentor_availability")
    def sync_mentor_availability(self, mentor_id: str) -> bool:
        """Push the mentor's weekly schedule to their remote event type."""
        if self.client is None:
            return False
        profile = self.profile_repository.get_by_user_id(mentor_id)
        if profile is None:
            return False
        return self._sync_profile(profile)

    @BaseService.measure_operation("sync_all_mentor_availability")
    def sync_all_mentor_availability(self) -> AvailabilitySyncResult:
        """Re-push the weekly schedule of every mentor linked to a remote event type."""
        result = AvailabilitySyncResult()
        if self.client is None:
            return result
        for profile in self.profile_repository.list_calendar_linked():
            if self._sync_profile(profile):
                result.synced += 1
            else:
                result.failed.append(profile.user_id)
        return result

    def _sync_profile(self, profile: MentorProfile) -> bool:
        try:
            event_type, provisioned = self._ensure_event_type(profile)
            if not provisioned:
                self._push_schedule(profile, int(event_type["id"]))
            if self.db is not None:
                self.db.commit()
            return True
        except (CalComError, KeyError, TypeError, ValueError) as exc:
            prometheus_metrics.record_external_calendar_failure("sync_availability")
            self.logger.error(f"Availability sync failed for mentor {profile.user_id}: {exc}")
            return False
