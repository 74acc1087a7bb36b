# backend/gym_booking/core/exceptions.py
"""
Domain-specific exceptions for the gym booking backend.

Every admission outcome other than success is one of these exceptions. They
carry a machine-readable ``code``, a localized ``message`` and a ``details``
payload, and know how to turn themselves into an HTTPException at the API
layer.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from .messages import get_message

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Admission outcomes


class ClassUnavailable(NotFoundException):
    """Class is missing from the organization or has been cancelled."""

    def __init__(self, class_id: str, *, cancelled: bool = False):
        super().__init__(
            message=get_message("class_cancelled" if cancelled else "class_unavailable"),
            code="CLASS_UNAVAILABLE",
            details={"class_id": class_id, "cancelled": cancelled},
        )


class BookingNotFound(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            message=get_message("booking_not_found"),
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class MemberNotFound(NotFoundException):
    def __init__(self, member_id: str):
        super().__init__(
            message=get_message("member_not_found"),
            code="MEMBER_NOT_FOUND",
            details={"member_id": member_id},
        )


class ClassAlreadyStarted(BusinessRuleException):
    def __init__(self, class_id: str, start_time: datetime):
        super().__init__(
            message=get_message("class_already_started"),
            code="CLASS_ALREADY_STARTED",
            details={"class_id": class_id, "start_time": start_time.isoformat()},
        )


class BookingWindowClosed(BusinessRuleException):
    def __init__(self, booking_closes_minutes: int, closes_at: datetime):
        super().__init__(
            message=get_message("booking_window_closed", minutes=booking_closes_minutes),
            code="BOOKING_WINDOW_CLOSED",
            details={
                "booking_closes_minutes": booking_closes_minutes,
                "closes_at": closes_at.isoformat(),
            },
        )


class BookingWindowNotYetOpen(BusinessRuleException):
    """
    Raised when the booking window has not opened yet.

    Windows that are a whole number of days are described in days; anything
    else is described in hours. Both remaining counts are always in the
    payload, rounded up.
    """

    def __init__(
        self,
        booking_opens_hours: int,
        opens_at: datetime,
        hours_until_open: int,
        days_until_open: int,
    ):
        if booking_opens_hours % 24 == 0:
            message = get_message(
                "booking_window_not_open_days",
                days=booking_opens_hours // 24,
                remaining=days_until_open,
            )
        else:
            message = get_message(
                "booking_window_not_open_hours",
                hours=booking_opens_hours,
                remaining=hours_until_open,
            )
        super().__init__(
            message=message,
            code="BOOKING_WINDOW_NOT_YET_OPEN",
            details={
                "booking_opens_hours": booking_opens_hours,
                "opens_at": opens_at.isoformat(),
                "hours_until_open": hours_until_open,
                "days_until_open": days_until_open,
            },
        )


class DailyLimitReached(BusinessRuleException):
    def __init__(
        self,
        limit: int,
        current_count: int,
        target_date: date,
        timezone_name: str,
        existing_bookings: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(
            message=get_message("daily_limit_reached", limit=limit),
            code="DAILY_CLASS_LIMIT_REACHED",
            details={
                "limit": limit,
                "current_count": current_count,
                "target_date": target_date.isoformat(),
                "timezone": timezone_name,
                "existing_bookings": existing_bookings or [],
            },
        )


class MembershipInvalid(BusinessRuleException):
    """The membership gate refused the booking; its message is passed through."""

    def __init__(self, membership_code: str, message: str):
        super().__init__(
            message=message,
            code="MEMBERSHIP_INVALID",
            details={"membership_code": membership_code},
        )


class AlreadyBooked(ConflictException):
    def __init__(self, class_id: str, member_id: str, existing_status: Optional[str] = None):
        if existing_status == "confirmed":
            key = "already_booked_confirmed"
        elif existing_status == "waitlist":
            key = "already_booked_waitlist"
        else:
            key = "already_booked"
        super().__init__(
            message=get_message(key),
            code="ALREADY_BOOKED",
            details={
                "class_id": class_id,
                "member_id": member_id,
                "existing_status": existing_status,
            },
        )


class ClassFull(ConflictException):
    def __init__(self, class_id: str, capacity: int):
        super().__init__(
            message=get_message("class_full"),
            code="CLASS_FULL",
            details={"class_id": class_id, "capacity": capacity},
        )


class WaitlistFull(ConflictException):
    def __init__(self, class_id: str, max_waitlist: int):
        super().__init__(
            message=get_message("waitlist_full"),
            code="WAITLIST_FULL",
            details={"class_id": class_id, "max_waitlist": max_waitlist},
        )


class AlreadyFinal(ConflictException):
    """Booking is already in a terminal status; nothing was changed."""

    _MESSAGE_KEYS = {
        "cancelled": "already_final",
        "attended": "already_checked_in",
        "no_show": "already_no_show",
    }

    def __init__(self, booking_id: str, current_status: str):
        super().__init__(
            message=get_message(self._MESSAGE_KEYS.get(current_status, "already_final")),
            code="ALREADY_FINAL",
            details={"booking_id": booking_id, "status": current_status},
        )


class InvalidBookingTransition(ConflictException):
    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            message=get_message("waitlist_not_checkable"),
            code="INVALID_BOOKING_TRANSITION",
            details={
                "booking_id": booking_id,
                "status": current_status,
                "target_status": target_status,
            },
        )


class CancellationDeadlinePassed(BusinessRuleException):
    def __init__(self, cancellation_deadline_hours: int, deadline: datetime, *, started: bool):
        if started:
            message = get_message("cannot_cancel_past")
        else:
            message = get_message("cancellation_deadline", hours=cancellation_deadline_hours)
        super().__init__(
            message=message,
            code="CANCELLATION_DEADLINE_PASSED",
            details={
                "cancellation_deadline_hours": cancellation_deadline_hours,
                "deadline": deadline.isoformat(),
            },
        )


# Storage outcomes


class StorageError(ServiceException):
    """Persistence failed and the transaction was rolled back."""

    default_code = "STORAGE_ERROR"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or get_message("storage_error"),
            code=self.default_code,
            details=details,
        )


class StorageConflict(StorageError):
    """Serialization failure, deadlock or busy database. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_code = "STORAGE_CONFLICT"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or get_message("storage_conflict"), details=details)


class StorageTimeout(StorageError):
    """Lock wait or statement timeout. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_code = "STORAGE_TIMEOUT"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or get_message("storage_timeout"), details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class DuplicateRecordException(RepositoryException):
    """An insert or update hit a unique constraint."""


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """
    Check if an exception indicates DB connection pool exhaustion.

    All pooled connections are in use and the checkout timed out.
    """
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )
