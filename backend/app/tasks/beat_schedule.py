# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for MentorMatch.

Periodic booking maintenance. Tasks are scheduled using crontab
expressions for precise timing control.
"""

from typing import Any, Dict

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    # Decline bookings the mentor did not accept in time
    "auto-decline-expired-bookings": {
        "task": "app.tasks.booking_tasks.auto_decline_expired_bookings",
        "schedule": crontab(minute="*/5"),
        "options": {"queue": "bookings", "priority": 8},
    },
    # Move finished sessions to completed
    "mark-completed-bookings": {
        "task": "app.tasks.booking_tasks.mark_completed_bookings",
        "schedule": crontab(minute="*/15"),
        "options": {"queue": "bookings", "priority": 5},
    },
    # Confirmed sessions starting within 30 minutes that still lack a link
    "flag-sessions-missing-meeting-link": {
        "task": "app.tasks.booking_tasks.flag_sessions_missing_meeting_link",
        "schedule": crontab(minute="*/10"),
        "kwargs": {"window_minutes": 30},
        "options": {"queue": "bookings", "priority": 6},
    },
    # Re-push weekly schedules to the external calendar
    "sync-mentor-availability": {
        "task": "app.tasks.booking_tasks.sync_all_mentor_availability",
        "schedule": crontab(minute="*/30"),
        "options": {"queue": "bookings", "priority": 3},
    },
}


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    """Return a copy of the beat schedule."""
    return {name: dict(entry) for name, entry in CELERYBEAT_SCHEDULE.items()}
