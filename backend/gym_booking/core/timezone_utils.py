"""
Timezone utilities for the gym booking backend.

Organizations schedule classes in their own IANA zone. Stored instants are
UTC; calendar-day questions ("how many classes on this day") are answered in
the organization's zone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from .config import settings


def get_organization_timezone(timezone_name: Optional[str]) -> pytz.BaseTzInfo:
    """
    Resolve an organization's timezone.

    Args:
        timezone_name: IANA name stored on the organization, may be empty

    Returns:
        pytz timezone, falling back to the configured default
    """
    return pytz.timezone(timezone_name or settings.default_timezone)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite hands back naive values for ``DateTime(timezone=True)`` columns;
    those are always stored as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date_for(dt: datetime, timezone_name: Optional[str]) -> date:
    """Calendar date of ``dt`` as seen in the given zone."""
    tz = get_organization_timezone(timezone_name)
    return ensure_utc(dt).astimezone(tz).date()


def local_day_bounds_utc(target_date: date, timezone_name: Optional[str]) -> Tuple[datetime, datetime]:
    """
    UTC half-open interval [start, end) covering one local calendar day.

    Uses ``localize`` so days with a DST transition are 23 or 25 hours long.
    """
    tz = get_organization_timezone(timezone_name)
    start_local = tz.localize(datetime.combine(target_date, time.min))
    end_local = tz.localize(datetime.combine(target_date + timedelta(days=1), time.min))
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)
