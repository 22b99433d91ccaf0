"""External service integrations for MentorMatch."""

from .calcom_client import CalComClient, CalComError

__all__ = ["CalComClient", "CalComError"]
