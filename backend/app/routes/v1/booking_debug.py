# backend/app/routes/v1/booking_debug.py
"""
Booking diagnostics - API v1

Only mounted when DEBUG is enabled. Read-only.

Endpoints:
    GET /debug/mentor/{mentor_id}?date=YYYY-MM-DD - Why a mentor has (no) slots
"""

import asyncio
from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_booking_debug_service, get_current_active_user
from ...models.user import User
from ...schemas.base_responses import SuccessResponse
from ...services.booking_debug_service import BookingDebugService
from .bookings import OBJECT_ID_PATH_PATTERN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-debug"])


@router.get("/debug/mentor/{mentor_id}", response_model=SuccessResponse)
async def debug_mentor(
    mentor_id: str = Path(..., description="Mentor user id", pattern=OBJECT_ID_PATH_PATTERN),
    target_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_active_user),
    debug_service: BookingDebugService = Depends(get_booking_debug_service),
) -> SuccessResponse:
    """Run bookability checks for a mentor on a date (defaults to today, UTC)."""
    report = await asyncio.to_thread(
        debug_service.diagnose_mentor, mentor_id, target_date or date.today()
    )
    logger.info(
        "Mentor diagnostics requested",
        extra={"mentor_id": mentor_id, "requested_by": current_user.id, "issues": len(report["issues"])},
    )
    return SuccessResponse(message="Mentor diagnostics", data=report)
