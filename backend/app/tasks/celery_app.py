# backend/app/tasks/celery_app.py
"""
Celery application for MentorMatch booking maintenance.

Redis is both broker and result backend. Only the booking sweeps are
registered; they run on the ``bookings`` queue on the beat schedule in
``app.tasks.beat_schedule``.
"""

import logging
import os
from typing import Any, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from app.core.config import settings
from app.core.constants import LOG_FORMAT

logger = logging.getLogger(__name__)

TASK_MODULES = ("app.tasks.booking_tasks",)


def _broker_url() -> str:
    url = os.getenv("CELERY_BROKER_URL") or settings.redis_url
    # Redis URLs without a database index default to db 0
    if url.startswith("redis") and not url.rstrip("/").rsplit("/", 1)[-1].isdigit():
        url = f"{url.rstrip('/')}/0"
    return url


class BookingTask(Task):  # type: ignore[misc]
    """Task base that logs sweep failures and retries with the task id."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.error(
            f"Booking task {self.name} failed: {exc}",
            exc_info=True,
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.warning(
            f"Booking task {self.name} retrying ({self.request.retries}): {exc}",
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)


def create_celery_app() -> Celery:
    """
    Create the Celery application with the booking task modules and beat schedule.

    Returns:
        Celery: Configured application instance
    """
    from app.tasks.beat_schedule import get_beat_schedule

    broker_url = _broker_url()
    app = Celery(
        "mentormatch",
        broker=broker_url,
        backend=os.getenv("CELERY_RESULT_BACKEND") or broker_url,
        task_cls=cast(Type[Task], BookingTask),
    )
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        worker_prefetch_multiplier=1,
        worker_hijack_root_logger=False,
        # Sweeps are idempotent, so late acks are safe
        task_acks_late=True,
        task_soft_time_limit=120,
        task_time_limit=180,
        imports=TASK_MODULES,
        task_routes={"app.tasks.booking_tasks.*": {"queue": "bookings"}},
        beat_schedule=get_beat_schedule(),
    )
    return app


@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Use the application's log format instead of Celery's."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


celery_app = create_celery_app()
