# backend/gym_booking/services/booking_limits.py
"""Per-organization booking policy lookups."""

from dataclasses import dataclass
import logging
from typing import Optional, Protocol

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.organization import Organization
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingLimits:
    """
    Booking policy for one organization.

    ``max_classes_per_day`` is None when the organization has no daily cap.
    """

    max_classes_per_day: Optional[int]
    timezone: str

    @property
    def is_unlimited(self) -> bool:
        return not self.max_classes_per_day


def _resolve_timezone(organization: Organization) -> str:
    """The organization's IANA zone, or the default when it is empty or unknown."""
    name = organization.timezone or settings.default_timezone
    try:
        pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(
            "Organization has an unknown timezone, using default",
            extra={
                "organization_id": organization.id,
                "timezone": name,
                "default_timezone": settings.default_timezone,
            },
        )
        return settings.default_timezone
    return name


class BookingLimitsProvider(Protocol):
    def get(self, organization_id: str) -> BookingLimits: ...


class OrganizationBookingLimitsProvider:
    """Reads limits from the organizations table; unknown organizations get defaults."""

    def __init__(self, db: Session):
        self.organization_repository = RepositoryFactory.create_organization_repository(db)

    def get(self, organization_id: str) -> BookingLimits:
        organization = self.organization_repository.get_by_id(organization_id)
        if organization is None:
            logger.warning(
                "Organization not found for booking limits, using defaults",
                extra={"organization_id": organization_id},
            )
            return BookingLimits(max_classes_per_day=None, timezone=settings.default_timezone)
        return BookingLimits(
            max_classes_per_day=organization.daily_limit,
            timezone=_resolve_timezone(organization),
        )
