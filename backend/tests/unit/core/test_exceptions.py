from datetime import date, datetime, timezone

import pytest

from gym_booking.core.exceptions import (
    AlreadyBooked,
    AlreadyFinal,
    BookingNotFound,
    BookingWindowClosed,
    CancellationDeadlinePassed,
    ClassFull,
    ClassUnavailable,
    DailyLimitReached,
    DomainException,
    InvalidBookingTransition,
    MemberNotFound,
    MembershipInvalid,
    StorageConflict,
    StorageError,
    StorageTimeout,
    WaitlistFull,
    is_db_pool_exhaustion,
)
from gym_booking.core.messages import MESSAGES, get_message

_AT = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "exc, status_code, code",
    [
        (ClassUnavailable("c1"), 404, "CLASS_UNAVAILABLE"),
        (BookingNotFound("b1"), 404, "BOOKING_NOT_FOUND"),
        (MemberNotFound("m1"), 404, "MEMBER_NOT_FOUND"),
        (BookingWindowClosed(30, _AT), 422, "BOOKING_WINDOW_CLOSED"),
        (DailyLimitReached(2, 2, date(2030, 1, 15), "America/Mexico_City"), 422, "DAILY_CLASS_LIMIT_REACHED"),
        (MembershipInvalid("NO_MEMBERSHIP", "x"), 422, "MEMBERSHIP_INVALID"),
        (CancellationDeadlinePassed(2, _AT, started=False), 422, "CANCELLATION_DEADLINE_PASSED"),
        (AlreadyBooked("c1", "m1"), 409, "ALREADY_BOOKED"),
        (ClassFull("c1", 10), 409, "CLASS_FULL"),
        (WaitlistFull("c1", 3), 409, "WAITLIST_FULL"),
        (AlreadyFinal("b1", "cancelled"), 409, "ALREADY_FINAL"),
        (InvalidBookingTransition("b1", "waitlist", "attended"), 409, "INVALID_BOOKING_TRANSITION"),
        (StorageConflict(), 503, "STORAGE_CONFLICT"),
        (StorageTimeout(), 503, "STORAGE_TIMEOUT"),
        (StorageError(), 500, "STORAGE_ERROR"),
    ],
)
def test_to_http_exception_maps_status_and_code(
    exc: DomainException, status_code: int, code: str
) -> None:
    http_exc = exc.to_http_exception()

    assert http_exc.status_code == status_code
    assert http_exc.detail["code"] == code
    assert http_exc.detail["message"] == exc.message


def test_only_transient_storage_errors_are_retryable() -> None:
    assert StorageConflict().retryable
    assert StorageTimeout().retryable
    assert not StorageError().retryable
    assert not ClassFull("c1", 1).retryable


def test_cancellation_deadline_message_after_start() -> None:
    exc = CancellationDeadlinePassed(2, _AT, started=True)

    assert exc.message == get_message("cannot_cancel_past")


def test_already_final_message_follows_status() -> None:
    assert AlreadyFinal("b1", "attended").message == get_message("already_checked_in")
    assert AlreadyFinal("b1", "no_show").message == get_message("already_no_show")
    assert AlreadyFinal("b1", "cancelled").message == get_message("already_final")


def test_message_catalogs_have_the_same_keys() -> None:
    assert set(MESSAGES["es"]) == set(MESSAGES["en"])


def test_get_message_locale_and_fallbacks() -> None:
    assert get_message("class_full", locale="en") == "The class is full and has no waitlist"
    assert get_message("daily_limit_reached", locale="es", limit=2) == (
        "Ya alcanzaste el maximo de 2 clases para este dia"
    )
    assert get_message("unknown_key") == "unknown_key"


def test_pool_exhaustion_detection() -> None:
    assert is_db_pool_exhaustion(Exception("QueuePool limit of size 5 overflow 5 reached"))
    assert not is_db_pool_exhaustion(Exception("syntax error"))
