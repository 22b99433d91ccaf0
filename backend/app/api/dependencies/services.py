# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import CalComClient
from ...services.booking_debug_service import BookingDebugService
from ...services.booking_service import BookingService
from ...services.external_calendar_service import ExternalCalendarService
from ...services.notification_service import NotificationService
from ...services.payment_service import PaymentGateway, build_payment_gateway
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_calcom_client() -> Optional[CalComClient]:
    """Cal.com client singleton, or None when no API key is configured."""
    if not settings.calcom_enabled or settings.calcom_api_key is None:
        logger.info("Cal.com not configured; availability uses weekly schedules")
        return None
    return CalComClient(
        api_key=settings.calcom_api_key,
        base_url=settings.calcom_api_url,
        timeout=settings.calcom_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_payment_gateway() -> PaymentGateway:
    """Get the payment gateway singleton."""
    return build_payment_gateway()


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """Get notification service instance."""
    return NotificationService()


def get_external_calendar_service(db: Session = Depends(get_db)) -> ExternalCalendarService:
    """
    Get external calendar adapter.

    Args:
        db: Database session

    Returns:
        ExternalCalendarService bound to the configured Cal.com client
    """
    return ExternalCalendarService(db, client=get_calcom_client())


def get_booking_service(
    db: Session = Depends(get_db),
    calendar_service: ExternalCalendarService = Depends(get_external_calendar_service),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        calendar_service: External calendar adapter
        payment_gateway: Payment gateway used for charges and refunds
        notification_service: Notification service for sending emails

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        calendar_service=calendar_service,
        payment_gateway=payment_gateway,
        notification_service=notification_service,
    )


def get_booking_debug_service(db: Session = Depends(get_db)) -> BookingDebugService:
    return BookingDebugService(db)
