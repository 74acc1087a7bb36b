# backend/gym_booking/routes/v1/bookings.py
"""
Class booking routes - API v1

Versioned booking endpoints under /api/v1/organizations/{organization_id}.
All business logic delegated to BookingAdmissionEngine.

Endpoints:
    POST /classes/{class_id}/reservations - Reserve a seat or waitlist place
    POST /bookings/{booking_id}/cancel - Cancel a booking (member or staff)
    POST /bookings/{booking_id}/check-in - Mark a confirmed booking attended (staff)
    POST /bookings/{booking_id}/no-show - Mark a confirmed booking no-show (staff)
    GET /classes/{class_id}/bookings - Class roster with the ordered waitlist (staff)
    GET /members/{member_id}/bookings - A member's upcoming bookings or class history
    GET /members/{member_id}/daily-limits - Per-day booking counts for a member
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import get_booking_engine
from ...core.enums import BookingListScope
from ...core.exceptions import DomainException
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.booking import (
    AdmissionErrorResponse,
    BookingResponse,
    CancelRequest,
    ClassRosterResponse,
    DailyLimitEntry,
    DailyLimitsResponse,
    MemberBookingEntry,
    MemberBookingsResponse,
    ReserveRequest,
    RosterEntry,
)
from ...services.booking_admission_engine import Actor, BookingAdmissionEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])

_ERROR_RESPONSES = {
    404: {"model": AdmissionErrorResponse, "description": "Class or booking not found"},
    409: {"model": AdmissionErrorResponse, "description": "Booking conflict"},
    422: {"model": AdmissionErrorResponse, "description": "Booking rule violated"},
    503: {"model": AdmissionErrorResponse, "description": "Storage busy, retry"},
}


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "/classes/{class_id}/reservations",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def reserve_class(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    class_id: str = Path(..., description="Class ULID", pattern=ULID_PATH_PATTERN),
    payload: ReserveRequest = Body(...),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> BookingResponse:
    """Reserve a seat, or join the waitlist when the class is full."""
    try:
        booking = await asyncio.to_thread(
            engine.reserve, organization_id, class_id, payload.member_id
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    responses=_ERROR_RESPONSES,
)
async def cancel_booking(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[CancelRequest] = Body(default=None),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> BookingResponse:
    """Cancel a booking."""
    cancel_data = cancel_data or CancelRequest()
    actor = (
        Actor.member(cancel_data.acting_member_id)
        if cancel_data.acting_member_id is not None
        else Actor.staff()
    )
    try:
        booking = await asyncio.to_thread(
            engine.cancel, organization_id, booking_id, actor, cancel_data.reason
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/bookings/{booking_id}/check-in",
    response_model=BookingResponse,
    responses=_ERROR_RESPONSES,
)
async def check_in_booking(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> BookingResponse:
    """Mark a confirmed booking as attended."""
    try:
        booking = await asyncio.to_thread(engine.check_in, organization_id, booking_id)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/bookings/{booking_id}/no-show",
    response_model=BookingResponse,
    responses=_ERROR_RESPONSES,
)
async def mark_booking_no_show(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> BookingResponse:
    """Mark a confirmed booking as no-show."""
    try:
        booking = await asyncio.to_thread(engine.mark_no_show, organization_id, booking_id)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/classes/{class_id}/bookings",
    response_model=ClassRosterResponse,
    responses={404: _ERROR_RESPONSES[404]},
)
async def get_class_bookings(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    class_id: str = Path(..., description="Class ULID", pattern=ULID_PATH_PATTERN),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> ClassRosterResponse:
    """Seated members, the waitlist in queue order, and cancellations for a class."""
    try:
        roster = await asyncio.to_thread(engine.class_roster, organization_id, class_id)
    except DomainException as e:
        handle_domain_exception(e)
    gym_class = roster.gym_class
    return ClassRosterResponse(
        class_id=gym_class.id,
        class_name=gym_class.name,
        start_time=gym_class.starts_at,
        capacity=gym_class.capacity,
        confirmed_count=gym_class.confirmed_count,
        is_cancelled=bool(gym_class.is_cancelled),
        seated=[RosterEntry.from_row(row) for row in roster.seated],
        waitlist=[RosterEntry.from_row(row) for row in roster.waitlist],
        cancelled=[RosterEntry.from_row(row) for row in roster.cancelled],
    )


@router.get(
    "/members/{member_id}/bookings",
    response_model=MemberBookingsResponse,
    responses={404: _ERROR_RESPONSES[404]},
)
async def get_member_bookings(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    member_id: str = Path(..., description="Member ULID", pattern=ULID_PATH_PATTERN),
    scope: BookingListScope = Query(BookingListScope.UPCOMING, description="upcoming or history"),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> MemberBookingsResponse:
    """A member's upcoming bookings (soonest first) or class history (latest first)."""
    try:
        rows = await asyncio.to_thread(engine.member_bookings, organization_id, member_id, scope)
    except DomainException as e:
        handle_domain_exception(e)
    return MemberBookingsResponse(
        member_id=member_id,
        scope=scope,
        bookings=[MemberBookingEntry.from_row(row) for row in rows],
    )


@router.get(
    "/members/{member_id}/daily-limits",
    response_model=DailyLimitsResponse,
)
async def get_member_daily_limits(
    organization_id: str = Path(..., description="Organization ULID", pattern=ULID_PATH_PATTERN),
    member_id: str = Path(..., description="Member ULID", pattern=ULID_PATH_PATTERN),
    dates: List[date] = Query(..., description="Local calendar dates"),
    engine: BookingAdmissionEngine = Depends(get_booking_engine),
) -> DailyLimitsResponse:
    """Booking counts per local day, for the member's class calendar."""
    try:
        counts = await asyncio.to_thread(engine.daily_limits, organization_id, member_id, dates)
    except DomainException as e:
        handle_domain_exception(e)
    return DailyLimitsResponse(
        member_id=member_id,
        days=[
            DailyLimitEntry(day=day, count=result.count, is_limit_reached=result.is_limit_reached)
            for day, result in counts.items()
        ],
    )
