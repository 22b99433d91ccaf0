# backend/app/services/notification_service.py
"""
Booking notifications.

Emails are rendered from the Jinja2 templates in ``app/templates/email``.
Every method is fire-and-forget: rendering and delivery errors are logged
and reported as ``False``, never raised, so booking state transitions do
not depend on email delivery.
"""

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.constants import BRAND_NAME
from ..core.timezone_utils import ensure_utc, get_timezone
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from .email import EmailSender, build_email_sender

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def local_datetime(value: Optional[datetime], tz_name: Optional[str]) -> str:
    """Format a UTC instant in the recipient's timezone."""
    if value is None:
        return ""
    local = ensure_utc(value).astimezone(get_timezone(tz_name))
    return local.strftime("%A, %d %B %Y at %H:%M %Z")


def build_template_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["local_datetime"] = local_datetime
    return env


class NotificationService:
    """Sends booking lifecycle emails to students and mentors."""

    def __init__(self, sender: Optional[EmailSender] = None, env: Optional[Environment] = None):
        self._sender = sender
        self.env = env or build_template_environment()

    @property
    def sender(self) -> EmailSender:
        if self._sender is None:
            self._sender = build_email_sender()
        return self._sender

    def render(self, template_name: str, **context: Any) -> str:
        template = self.env.get_template(f"email/booking/{template_name}")
        return template.render(brand_name=BRAND_NAME, **context)

    def _deliver(
        self, kind: str, booking: Booking, user: User, subject: str, template_name: str, **context: Any
    ) -> bool:
        try:
            body = self.render(template_name, booking=booking, **context)
            self.sender.send_email(user.email, subject, body)
            return True
        except Exception as exc:
            logger.error(
                f"Failed to send {kind} notification",
                extra={"booking_id": booking.id, "user_id": user.id, "error": str(exc)},
            )
            return False

    def send_booking_confirmation(self, booking: Booking, student: User, mentor: User) -> bool:
        context = {
            "student": student,
            "mentor": mentor,
            "pending": booking.status == BookingStatus.PENDING_MENTOR_ACCEPTANCE.value,
        }
        student_ok = self._deliver(
            "confirmation", booking, student, "Your session booking", "confirmation_student.txt", **context
        )
        mentor_ok = self._deliver(
            "confirmation", booking, mentor, "New session booking", "confirmation_mentor.txt", **context
        )
        return student_ok and mentor_ok

    def send_cancellation_notification(
        self, booking: Booking, student: User, mentor: User, cancelled_by: str
    ) -> bool:
        ok = True
        for recipient in (student, mentor):
            ok = (
                self._deliver(
                    "cancellation",
                    booking,
                    recipient,
                    "Session cancelled",
                    "cancellation.txt",
                    recipient=recipient,
                    cancelled_by=cancelled_by,
                    show_refund=recipient is student,
                )
                and ok
            )
        return ok

    def send_session_acceptance_notification(self, booking: Booking, student: User, mentor: User) -> bool:
        return self._deliver(
            "acceptance",
            booking,
            student,
            "Your session is confirmed",
            "acceptance.txt",
            student=student,
            mentor=mentor,
        )

    def send_decline_notification(self, booking: Booking, student: User, mentor: User) -> bool:
        return self._deliver(
            "decline",
            booking,
            student,
            "Session request declined",
            "decline.txt",
            student=student,
            mentor=mentor,
        )

    def send_reschedule_notification(self, booking: Booking, student: User, mentor: User) -> bool:
        ok = True
        for recipient in (student, mentor):
            ok = (
                self._deliver(
                    "reschedule",
                    booking,
                    recipient,
                    "Session rescheduled",
                    "reschedule.txt",
                    recipient=recipient,
                )
                and ok
            )
        return ok
