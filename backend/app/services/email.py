# backend/app/services/email.py
"""
Email delivery for MentorMatch.

``ResendEmailService`` sends through the Resend API; ``ConsoleEmailService``
logs the message instead and is the default outside production. Both raise
``NotificationException`` on failure and leave swallowing to the caller.
"""

import logging
from typing import Any, Dict, Optional, Protocol

import resend

from ..core.config import settings
from ..core.exceptions import NotificationException

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        ...


class ResendEmailService:
    """Sends plain-text emails with Resend."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        api_key = api_key or settings.resend_api_key
        if not api_key:
            raise NotificationException("Resend API key not configured")
        resend.api_key = api_key
        self.from_email = from_email or settings.email_from_address

    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        try:
            response = resend.Emails.send(
                {
                    "from": self.from_email,
                    "to": to_email,
                    "subject": subject,
                    "text": text_content,
                }
            )
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise NotificationException(f"Email sending failed: {str(e)}")

        logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response) if response else {}


class ConsoleEmailService:
    """Logs emails instead of sending them."""

    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        logger.info(f"[console email] to={to_email} subject={subject!r}\n{text_content}")
        return {"id": "console"}


def build_email_sender() -> EmailSender:
    if settings.email_provider == "resend":
        return ResendEmailService()
    return ConsoleEmailService()
