# backend/gym_booking/models/booking.py
"""
Booking model for class reservations.

A booking is a member's claim on a class: either a confirmed seat or a place
in the class waitlist. Bookings are never deleted; cancelling keeps the row
for history and frees the (class, member) pair for a new reservation.
"""

from datetime import datetime
from enum import Enum
import logging
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.sql import func
import ulid

from ..core.enums import ActorRole
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    CONFIRMED = "confirmed"  # Holds a seat
    WAITLIST = "waitlist"  # Queued for a seat
    CANCELLED = "cancelled"
    ATTENDED = "attended"  # Checked in
    NO_SHOW = "no_show"


TERMINAL_STATUSES = frozenset(
    {BookingStatus.CANCELLED.value, BookingStatus.ATTENDED.value, BookingStatus.NO_SHOW.value}
)
# Statuses that count against a member's daily quota
COUNTED_STATUSES = (
    BookingStatus.CONFIRMED.value,
    BookingStatus.WAITLIST.value,
    BookingStatus.ATTENDED.value,
    BookingStatus.NO_SHOW.value,
)
# Statuses that hold a seat in the class's confirmed_count
SEATED_STATUSES = (
    BookingStatus.CONFIRMED.value,
    BookingStatus.ATTENDED.value,
    BookingStatus.NO_SHOW.value,
)

_ACTIVE_PREDICATE = text("status <> 'cancelled'")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), ForeignKey("organizations.id"), nullable=False)
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False)
    member_id = Column(String(26), ForeignKey("members.id"), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    # 1-based, contiguous per class; NULL unless status is waitlist
    waitlist_position = Column(Integer, nullable=True)

    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(10), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('confirmed', 'waitlist', 'cancelled', 'attended', 'no_show')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "(status = 'waitlist' AND waitlist_position IS NOT NULL AND waitlist_position >= 1) "
            "OR (status <> 'waitlist' AND waitlist_position IS NULL)",
            name="ck_bookings_waitlist_position",
        ),
        CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('staff', 'member')",
            name="ck_bookings_cancelled_by",
        ),
        # At most one live booking per member per class
        Index(
            "uq_bookings_active_class_member",
            "class_id",
            "member_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("ix_bookings_class_status_position", "class_id", "status", "waitlist_position"),
        Index("ix_bookings_org_member", "organization_id", "member_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: class={self.class_id}, member={self.member_id}, "
            f"status={self.status}, position={self.waitlist_position}>"
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def cancel(self, actor: ActorRole, reason: Optional[str], cancelled_at: datetime) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.waitlist_position = None
        self.cancelled_at = cancelled_at
        self.cancelled_by = actor.value
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {actor.value}")

    def promote(self) -> None:
        """Move a waitlisted booking into a confirmed seat."""
        self.status = BookingStatus.CONFIRMED.value
        self.waitlist_position = None
        logger.info(f"Booking {self.id} promoted from waitlist")

    def check_in(self, checked_in_at: datetime) -> None:
        self.status = BookingStatus.ATTENDED.value
        self.checked_in_at = checked_in_at
        logger.info(f"Booking {self.id} checked in")

    def mark_no_show(self) -> None:
        self.status = BookingStatus.NO_SHOW.value
        logger.info(f"Booking {self.id} marked as no-show")
