# backend/gym_booking/schemas/booking.py
"""Request and response schemas for the booking endpoints."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ..core.enums import BookingListScope
from ..core.timezone_utils import ensure_utc
from ..core.ulid_helper import ULID_PATH_PATTERN
from ..models.booking import Booking
from ..models.gym_class import GymClass
from ..repositories.booking_repository import MemberBookingRow, RosterRow
from ._strict_base import StrictModel, StrictRequestModel


class ReserveRequest(StrictRequestModel):
    member_id: str = Field(
        ..., min_length=1, pattern=ULID_PATH_PATTERN, description="Member reserving the seat"
    )


class CancelRequest(StrictRequestModel):
    """
    Schema for cancelling a booking.

    Without ``acting_member_id`` the request is treated as a staff action.
    """

    acting_member_id: Optional[str] = Field(
        default=None,
        min_length=1,
        pattern=ULID_PATH_PATTERN,
        description="Member cancelling their own booking",
    )
    reason: Optional[str] = Field(default=None, max_length=500, description="Cancellation reason")

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        """Blank reasons are treated as missing."""
        if v is None:
            return None
        return v or None


class BookingResponse(StrictModel):
    booking_id: str
    organization_id: str
    class_id: str
    member_id: str
    status: str
    waitlist_position: Optional[int] = None
    checked_in_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            booking_id=booking.id,
            organization_id=booking.organization_id,
            class_id=booking.class_id,
            member_id=booking.member_id,
            status=booking.status,
            waitlist_position=booking.waitlist_position,
            checked_in_at=booking.checked_in_at,
            cancelled_at=booking.cancelled_at,
            cancellation_reason=booking.cancellation_reason,
            cancelled_by=booking.cancelled_by,
        )


class RosterEntry(BookingResponse):
    member_name: str

    @classmethod
    def from_row(cls, row: RosterRow) -> "RosterEntry":
        return cls(
            **BookingResponse.from_booking(row.booking).model_dump(),
            member_name=row.member_name,
        )


class ClassRosterResponse(StrictModel):
    """
    Bookings for one class.

    ``waitlist`` is in queue order; ``seated`` and ``cancelled`` in booking order.
    """

    class_id: str
    class_name: str
    start_time: datetime
    capacity: int
    confirmed_count: int
    is_cancelled: bool
    seated: List[RosterEntry]
    waitlist: List[RosterEntry]
    cancelled: List[RosterEntry]


class BookedClassSummary(StrictModel):
    class_id: str
    name: str
    start_time: datetime
    end_time: datetime
    is_cancelled: bool
    cancellation_deadline: datetime

    @classmethod
    def from_class(cls, gym_class: GymClass) -> "BookedClassSummary":
        return cls(
            class_id=gym_class.id,
            name=gym_class.name,
            start_time=gym_class.starts_at,
            end_time=ensure_utc(gym_class.end_time),
            is_cancelled=bool(gym_class.is_cancelled),
            cancellation_deadline=gym_class.cancellation_deadline,
        )


class MemberBookingEntry(BookingResponse):
    gym_class: BookedClassSummary

    @classmethod
    def from_row(cls, row: MemberBookingRow) -> "MemberBookingEntry":
        return cls(
            **BookingResponse.from_booking(row.booking).model_dump(),
            gym_class=BookedClassSummary.from_class(row.gym_class),
        )


class MemberBookingsResponse(StrictModel):
    member_id: str
    scope: BookingListScope
    bookings: List[MemberBookingEntry]


class DailyLimitEntry(StrictModel):
    day: date
    count: int
    is_limit_reached: bool


class DailyLimitsResponse(StrictModel):
    member_id: str
    days: List[DailyLimitEntry]


class AdmissionErrorResponse(StrictModel):
    """Problem document returned for rejected admissions (documentation only)."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: str
    code: str
    errors: Dict[str, Any] = Field(default_factory=dict)
