# backend/app/services/booking_debug_service.py
"""
Read-only diagnostics for a mentor's bookability.

Used by the debug router to explain why a mentor shows no slots on a date.
Nothing here writes to the database or calls the external calendar.
"""

from datetime import date, datetime, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..domain.availability import Weekday
from ..models.user import UserRole
from ..repositories import RepositoryFactory
from .base import BaseService
from .external_calendar_service import ExternalCalendarService

logger = logging.getLogger(__name__)


class BookingDebugService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.profile_repository = RepositoryFactory.create_mentor_profile_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("diagnose_mentor")
    def diagnose_mentor(
        self, mentor_id: str, target_date: date, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Collect checks, issues and suggestions for one mentor and date.

        Returns:
            Dict with ``checks``, ``issues``, ``suggestions`` and ``slot_count``
        """
        now = now or datetime.now(timezone.utc)
        checks: Dict[str, Any] = {}
        issues: List[str] = []
        suggestions: List[str] = []

        user = self.user_repository.get_by_id(mentor_id, load_relationships=False)
        checks["user_exists"] = user is not None
        checks["is_mentor"] = bool(user and user.role == UserRole.MENTOR.value)
        if user is None:
            issues.append("User does not exist")
            suggestions.append("Check the mentor id")
            return self._report(mentor_id, target_date, checks, issues, suggestions, 0)
        if not checks["is_mentor"]:
            issues.append(f"User role is {user.role}, not mentor")

        profile = self.profile_repository.get_by_user_id(mentor_id)
        checks["profile_exists"] = profile is not None
        if profile is None:
            issues.append("Mentor profile does not exist")
            suggestions.append("Create a mentor profile with a weekly schedule")
            return self._report(mentor_id, target_date, checks, issues, suggestions, 0)

        checks["is_accepting_bookings"] = profile.is_accepting_bookings
        if not profile.is_accepting_bookings:
            issues.append("Mentor is not accepting bookings")
            suggestions.append("Enable bookings on the mentor profile")

        weekly = profile.get_weekly_availability()
        schedule = {}
        for weekday in Weekday:
            day = weekly.for_day(weekday)
            schedule[weekday.label] = {
                "is_available": day.is_available,
                "time_slots": [
                    {"start_time": interval.start_time, "end_time": interval.end_time}
                    for interval in day.time_slots
                ],
            }
        checks["weekly_schedule"] = schedule
        if not any(weekly.for_day(weekday).is_available for weekday in Weekday):
            issues.append("No available days in the weekly schedule")
            suggestions.append("Mark at least one day as available")

        target_day = Weekday.from_date(target_date)
        target_schedule = weekly.for_day(target_day)
        checks["target_weekday"] = target_day.label
        if not target_schedule.is_available or not target_schedule.time_slots:
            issues.append(f"{target_day.label} is not available in the weekly schedule")
            suggestions.append(f"Add time slots for {target_day.label}")

        durations = profile.get_session_durations()
        checks["session_durations"] = durations
        if not durations:
            issues.append("No valid session durations configured")
            suggestions.append("Set session durations between 15 and 180 minutes")

        checks["hourly_rate"] = float(profile.hourly_rate or 0)
        if not profile.hourly_rate or profile.hourly_rate <= 0:
            issues.append("Hourly rate is not set")
            suggestions.append("Set a positive hourly rate")

        checks["calcom_event_type_id"] = profile.calcom_event_type_id
        checks["active_bookings"] = self.booking_repository.count_active_for_mentor(mentor_id)

        calendar = ExternalCalendarService(self.db, profile_repository=self.profile_repository)
        slot_count = len(calendar.generate_local_slots(profile, target_date, now))
        if slot_count == 0 and not issues:
            issues.append("Schedule produced no slots for this date")
            suggestions.append("Check the lead time and interval lengths against session durations")

        return self._report(mentor_id, target_date, checks, issues, suggestions, slot_count)

    @staticmethod
    def _report(
        mentor_id: str,
        target_date: date,
        checks: Dict[str, Any],
        issues: List[str],
        suggestions: List[str],
        slot_count: int,
    ) -> Dict[str, Any]:
        return {
            "mentor_id": mentor_id,
            "date": target_date.isoformat(),
            "checks": checks,
            "issues": issues,
            "suggestions": suggestions,
            "slot_count": slot_count,
        }
