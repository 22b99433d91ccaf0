# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/booking.
All business logic delegated to BookingService; every response uses the
``{success, message, data}`` envelope.

Endpoints:
    POST /available-slots - Bookable slots for a mentor on a date
    POST /create - Book a slot
    POST /sync-availability - Push the mentor's weekly schedule to Cal.com
    GET /user-bookings - List the caller's bookings
    GET /{booking_id} - Booking details
    PUT /{booking_id}/cancel - Cancel a booking
    PUT /{booking_id}/reschedule - Move a booking to a new slot
    PUT /{booking_id}/accept - Mentor accepts a pending booking
    PUT /{booking_id}/decline - Mentor declines a pending booking
    POST /{booking_id}/rate - Rate a completed session
"""

import asyncio
import logging
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_service,
    get_current_active_user,
    get_current_mentor,
    get_external_calendar_service,
)
from ...core.exceptions import DomainException
from ...models.booking import MeetingProvider
from ...models.user import User
from ...schemas.base_responses import PaginatedResponse, SuccessResponse
from ...schemas.booking import (
    AvailableSlotsRequest,
    BookingAccept,
    BookingCancel,
    BookingCreate,
    BookingDecline,
    BookingListStatus,
    BookingRate,
    BookingReschedule,
)
from ...services.booking_service import BookingService
from ...services.external_calendar_service import ExternalCalendarService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

OBJECT_ID_PATH_PATTERN = r"^[0-9a-fA-F]{24}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _booking_id_path() -> Any:
    return Path(
        ...,
        description="Booking id",
        pattern=OBJECT_ID_PATH_PATTERN,
        examples=["65f1c0de9a1b2c3d4e5f6a7b"],
    )


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("/available-slots", response_model=SuccessResponse)
async def get_available_slots(
    payload: AvailableSlotsRequest = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """List bookable slots for a mentor on a date."""
    try:
        listing = await asyncio.to_thread(
            booking_service.get_available_slots, payload.mentor_id, payload.date
        )
    except DomainException as e:
        handle_domain_exception(e)

    return SuccessResponse(
        message="Available slots retrieved successfully",
        data={
            "slots": [slot.to_dict() for slot in listing.slots],
            "source": listing.source,
            "reason": listing.reason,
        },
    )


@router.post(
    "/create",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Time conflict"}, 402: {"description": "Payment failed"}},
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Book a slot, charge the student and set up the meeting."""
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_user.id, booking_data
        )
    except DomainException as e:
        handle_domain_exception(e)

    return SuccessResponse(
        message="Booking created successfully",
        data={
            "booking_id": booking.id,
            "status": booking.status,
            "meeting_url": booking.meeting_url,
            "meeting_provider": booking.meeting_provider,
            "calcom_created": booking.meeting_provider == MeetingProvider.EXTERNAL_CALENDAR.value,
            "booking": booking.to_dict(),
        },
    )


@router.post("/sync-availability", response_model=SuccessResponse)
async def sync_availability(
    current_user: User = Depends(get_current_mentor),
    calendar_service: ExternalCalendarService = Depends(get_external_calendar_service),
) -> SuccessResponse:
    """Push the mentor's weekly schedule to the external calendar."""
    synced = await asyncio.to_thread(calendar_service.sync_mentor_availability, current_user.id)
    return SuccessResponse(
        success=synced,
        message=(
            "Availability synced successfully"
            if synced
            else "Availability could not be synced with the external calendar"
        ),
        data={"synced": synced},
    )


@router.get("/user-bookings", response_model=SuccessResponse)
async def list_user_bookings(
    status_filter: Optional[BookingListStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """List the caller's bookings as student or mentor."""
    try:
        result = await asyncio.to_thread(
            booking_service.list_user_bookings, current_user.id, status_filter, page, limit
        )
    except DomainException as e:
        handle_domain_exception(e)

    page_data = PaginatedResponse[dict](
        items=[booking.to_dict() for booking in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )
    return SuccessResponse(message="Bookings retrieved successfully", data=page_data.model_dump())


# ============================================================================
# SECTION 2: Booking-scoped routes
# ============================================================================


@router.get(
    "/{booking_id}",
    response_model=SuccessResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = _booking_id_path(),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Get booking details for one of its parties."""
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id, current_user.id)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Booking retrieved successfully", data=booking.to_dict())


@router.put(
    "/{booking_id}/cancel",
    response_model=SuccessResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = _booking_id_path(),
    cancel_data: Optional[BookingCancel] = Body(None),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Cancel a booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            current_user.id,
            cancel_data.reason if cancel_data else None,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Booking cancelled successfully", data=booking.to_dict())


@router.put(
    "/{booking_id}/reschedule",
    response_model=SuccessResponse,
    responses={404: {"description": "Booking not found"}, 409: {"description": "Time conflict"}},
)
async def reschedule_booking(
    booking_id: str = _booking_id_path(),
    payload: BookingReschedule = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """
    Reschedule flow:
    - Validates access to the booking and the new slot
    - Moves the external calendar booking first (hard failure)
    - Updates the local booking under the mentor lock
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking, booking_id, current_user.id, payload.new_time_slot
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Booking rescheduled successfully", data=booking.to_dict())


@router.put("/{booking_id}/accept", response_model=SuccessResponse)
async def accept_booking(
    booking_id: str = _booking_id_path(),
    payload: Optional[BookingAccept] = Body(None),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Mentor accepts a pending booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.accept_booking,
            booking_id,
            current_user.id,
            payload.meeting_url if payload else None,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Booking accepted successfully", data=booking.to_dict())


@router.put("/{booking_id}/decline", response_model=SuccessResponse)
async def decline_booking(
    booking_id: str = _booking_id_path(),
    payload: Optional[BookingDecline] = Body(None),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Mentor declines a pending booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.decline_booking,
            booking_id,
            current_user.id,
            payload.reason if payload else None,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Booking declined successfully", data=booking.to_dict())


@router.post("/{booking_id}/rate", response_model=SuccessResponse)
async def rate_session(
    booking_id: str = _booking_id_path(),
    payload: BookingRate = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SuccessResponse:
    """Rate a completed session."""
    try:
        booking = await asyncio.to_thread(
            booking_service.rate_session, booking_id, current_user.id, payload.rating, payload.review
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessResponse(message="Session rated successfully", data=booking.to_dict())
