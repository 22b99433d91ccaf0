# backend/app/tasks/booking_tasks.py
"""
Celery tasks for booking maintenance.

Each task opens its own session, runs one BookingService sweep (or the
calendar schedule sync) and returns a small summary for the result
backend and logs.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.services.booking_service import BookingService
from app.services.external_calendar_service import ExternalCalendarService
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _build_service(db: Session) -> BookingService:
    from app.api.dependencies.services import (
        get_calcom_client,
        get_notification_service,
        get_payment_gateway,
    )

    return BookingService(
        db,
        calendar_service=ExternalCalendarService(db, client=get_calcom_client()),
        payment_gateway=get_payment_gateway(),
        notification_service=get_notification_service(),
    )


def run_auto_decline(
    db: Session, service_factory: Optional[Callable[[Session], BookingService]] = None
) -> Dict[str, Any]:
    service = (service_factory or _build_service)(db)
    result = service.auto_decline_expired_bookings()
    if result.processed or result.failed:
        logger.info(
            f"Auto-declined {result.processed} expired bookings ({len(result.failed)} failed)"
        )
    return {
        "declined": result.processed,
        "failed": result.failed,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }


def run_mark_completed(
    db: Session, service_factory: Optional[Callable[[Session], BookingService]] = None
) -> Dict[str, Any]:
    service = (service_factory or _build_service)(db)
    result = service.mark_completed_bookings()
    if result.processed:
        logger.info(f"Marked {result.processed} bookings as completed")
    return {
        "completed": result.processed,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }


def run_flag_missing_links(
    db: Session,
    window_minutes: int = 30,
    service_factory: Optional[Callable[[Session], BookingService]] = None,
) -> Dict[str, Any]:
    service = (service_factory or _build_service)(db)
    bookings = service.find_sessions_missing_meeting_link(window_minutes)
    return {
        "flagged": [booking.id for booking in bookings],
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }


def _build_calendar_service(db: Session) -> ExternalCalendarService:
    from app.api.dependencies.services import get_calcom_client

    return ExternalCalendarService(db, client=get_calcom_client())


def run_sync_all_availability(
    db: Session, calendar_factory: Optional[Callable[[Session], ExternalCalendarService]] = None
) -> Dict[str, Any]:
    calendar = (calendar_factory or _build_calendar_service)(db)
    result = calendar.sync_all_mentor_availability()
    if result.failed:
        logger.warning(f"Availability sync failed for {len(result.failed)} mentors")
    return {
        "synced": result.synced,
        "failed": result.failed,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }


@celery_app.task(name="app.tasks.booking_tasks.auto_decline_expired_bookings")  # type: ignore[misc]
def auto_decline_expired_bookings() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return run_auto_decline(db)
    finally:
        db.close()


@celery_app.task(name="app.tasks.booking_tasks.mark_completed_bookings")  # type: ignore[misc]
def mark_completed_bookings() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return run_mark_completed(db)
    finally:
        db.close()


@celery_app.task(name="app.tasks.booking_tasks.flag_sessions_missing_meeting_link")  # type: ignore[misc]
def flag_sessions_missing_meeting_link(window_minutes: int = 30) -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return run_flag_missing_links(db, window_minutes)
    finally:
        db.close()


@celery_app.task(name="app.tasks.booking_tasks.sync_all_mentor_availability")  # type: ignore[misc]
def sync_all_mentor_availability() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return run_sync_all_availability(db)
    finally:
        db.close()
