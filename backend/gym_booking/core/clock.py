# backend/gym_booking/core/clock.py
"""
Clock sources for admission decisions.

Services never call ``datetime.now`` directly; they ask an injected clock so
time windows and deadlines can be exercised deterministically in tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class ClockSource(Protocol):
    def now(self) -> datetime:
        """Return the current instant as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Settable clock for tests and replays."""

    def __init__(self, current: datetime):
        self._current = _as_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = _as_utc(current)

    def advance(self, **delta: float) -> datetime:
        self._current = self._current + timedelta(**delta)
        return self._current


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
