# backend/gym_booking/models/gym_class.py
"""
Scheduled class model.

A class is a single time-boxed session with a seat capacity and an optional
waitlist. ``confirmed_count`` is a denormalized cache of confirmed bookings;
only the admission engine writes it, and only while holding the class row
lock.
"""

from datetime import datetime, timedelta
from typing import cast

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func
import ulid

from ..core.timezone_utils import ensure_utc
from ..database import Base


class GymClass(Base):
    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), ForeignKey("organizations.id"), nullable=False)
    name = Column(String(200), nullable=False)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    capacity = Column(Integer, nullable=False)
    confirmed_count = Column(Integer, nullable=False, default=0)
    waitlist_enabled = Column(Boolean, nullable=False, default=True)
    max_waitlist = Column(Integer, nullable=False, default=0)

    # Booking policy
    booking_opens_hours = Column(Integer, nullable=False, default=168)
    booking_closes_minutes = Column(Integer, nullable=False, default=0)
    cancellation_deadline_hours = Column(Integer, nullable=False, default=0)

    is_cancelled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_classes_capacity_positive"),
        CheckConstraint(
            "confirmed_count >= 0 AND confirmed_count <= capacity",
            name="ck_classes_confirmed_within_capacity",
        ),
        CheckConstraint("max_waitlist >= 0", name="ck_classes_max_waitlist_non_negative"),
        CheckConstraint("booking_opens_hours >= 0", name="ck_classes_opens_non_negative"),
        CheckConstraint("booking_closes_minutes >= 0", name="ck_classes_closes_non_negative"),
        CheckConstraint(
            "cancellation_deadline_hours >= 0", name="ck_classes_cancel_deadline_non_negative"
        ),
        CheckConstraint("start_time < end_time", name="ck_classes_time_order"),
        Index("ix_classes_organization_start", "organization_id", "start_time"),
    )

    @property
    def starts_at(self) -> datetime:
        """Start time as aware UTC regardless of backend."""
        return ensure_utc(cast(datetime, self.start_time))

    @property
    def booking_opens_at(self) -> datetime:
        return self.starts_at - timedelta(hours=self.booking_opens_hours or 0)

    @property
    def booking_closes_at(self) -> datetime:
        return self.starts_at - timedelta(minutes=self.booking_closes_minutes or 0)

    @property
    def cancellation_deadline(self) -> datetime:
        return self.starts_at - timedelta(hours=self.cancellation_deadline_hours or 0)

    def __repr__(self) -> str:
        return (
            f"<GymClass {self.id}: {self.name} at {self.start_time}, "
            f"{self.confirmed_count}/{self.capacity}, cancelled={self.is_cancelled}>"
        )
