# backend/gym_booking/services/daily_limit_policy.py
"""
Daily booking quota.

Counts a member's live bookings (confirmed, waitlist, attended, no_show) on
one calendar day of the organization's timezone. A class at 23:30 local time
belongs to that local day even when it is already the next day in UTC.
Reads are not locked; the quota is advisory under heavy concurrency and the
unique booking index remains the hard guard.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.timezone_utils import ensure_utc, local_date_for, local_day_bounds_utc
from ..repositories.booking_repository import DayBookingRow
from ..repositories.factory import RepositoryFactory
from .booking_limits import BookingLimits

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyLimitCheck:
    can_book: bool
    current_count: int
    limit: Optional[int]
    target_date: date
    timezone: str
    existing_bookings: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DailyCount:
    count: int
    is_limit_reached: bool


def _describe(row: DayBookingRow) -> Dict[str, Any]:
    return {
        "id": row.booking_id,
        "class_name": row.class_name,
        "start_time": ensure_utc(row.start_time).isoformat(),
        "status": row.status,
    }


class DailyLimitPolicy:
    def __init__(self, db: Session):
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def bookings_on(
        self,
        organization_id: str,
        member_id: str,
        target_date: date,
        timezone_name: str,
    ) -> List[DayBookingRow]:
        start_utc, end_utc = local_day_bounds_utc(target_date, timezone_name)
        return self.booking_repository.list_member_bookings_between(
            organization_id, member_id, start_utc, end_utc
        )

    def count(
        self,
        organization_id: str,
        member_id: str,
        target_date: date,
        timezone_name: str,
    ) -> int:
        """Number of counted bookings the member holds on ``target_date`` (local)."""
        return len(self.bookings_on(organization_id, member_id, target_date, timezone_name))

    def check(
        self,
        organization_id: str,
        member_id: str,
        class_start_time: datetime,
        limits: BookingLimits,
    ) -> DailyLimitCheck:
        """
        Decide whether one more booking fits on the class's local day.

        Unlimited organizations always pass without querying.
        """
        target_date = local_date_for(class_start_time, limits.timezone)
        if limits.is_unlimited:
            return DailyLimitCheck(
                can_book=True,
                current_count=0,
                limit=None,
                target_date=target_date,
                timezone=limits.timezone,
            )

        rows = self.bookings_on(organization_id, member_id, target_date, limits.timezone)
        limit = int(limits.max_classes_per_day or 0)
        result = DailyLimitCheck(
            can_book=len(rows) < limit,
            current_count=len(rows),
            limit=limit,
            target_date=target_date,
            timezone=limits.timezone,
            existing_bookings=[_describe(row) for row in rows],
        )
        logger.debug(
            "Daily limit evaluated",
            extra={
                "member_id": member_id,
                "target_date": target_date.isoformat(),
                "current_count": result.current_count,
                "limit": limit,
            },
        )
        return result

    def check_dates(
        self,
        organization_id: str,
        member_id: str,
        dates: Iterable[date],
        limits: BookingLimits,
    ) -> Dict[date, DailyCount]:
        """Per-day counts for calendar views."""
        results: Dict[date, DailyCount] = {}
        for target_date in dates:
            if limits.is_unlimited:
                results[target_date] = DailyCount(count=0, is_limit_reached=False)
                continue
            current = self.count(organization_id, member_id, target_date, limits.timezone)
            results[target_date] = DailyCount(
                count=current,
                is_limit_reached=current >= int(limits.max_classes_per_day or 0),
            )
        return results
