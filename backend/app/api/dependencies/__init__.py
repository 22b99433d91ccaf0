# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_active_user, get_current_mentor
from .database import get_db
from .services import (
    get_booking_debug_service,
    get_booking_service,
    get_external_calendar_service,
    get_notification_service,
    get_payment_gateway,
)

__all__ = [
    # Auth
    "get_current_active_user",
    "get_current_mentor",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_booking_debug_service",
    "get_external_calendar_service",
    "get_notification_service",
    "get_payment_gateway",
]
