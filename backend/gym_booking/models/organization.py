# backend/gym_booking/models/organization.py
"""
Organization model.

Only the booking-policy columns the admission engine reads live here; the
rest of the organization profile is owned by other services.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)

    # IANA zone used to bucket classes into calendar days
    timezone = Column(String(64), nullable=True)
    # NULL or 0 means no daily cap
    max_classes_per_day = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "max_classes_per_day IS NULL OR max_classes_per_day >= 0",
            name="ck_organizations_max_classes_per_day",
        ),
    )

    @property
    def daily_limit(self) -> Optional[int]:
        """Effective per-day cap, or None when bookings are unlimited."""
        return self.max_classes_per_day or None

    def __repr__(self) -> str:
        return f"<Organization {self.id}: tz={self.timezone}, max/day={self.max_classes_per_day}>"
