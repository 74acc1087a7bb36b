# backend/gym_booking/repositories/booking_repository.py
"""
Booking Repository for the gym booking backend

Implements all data access operations for class bookings: live-booking
lookups, waitlist reads and batched renumbering, the per-day booking list
used by the daily limit policy, and the class roster and member booking
lists.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Dict, List, Optional, Sequence, cast

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import COUNTED_STATUSES, Booking, BookingStatus
from ..models.gym_class import GymClass
from ..models.member import Member
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayBookingRow:
    """A member booking joined with the class it belongs to."""

    booking_id: str
    class_id: str
    class_name: str
    start_time: datetime
    status: str


@dataclass(frozen=True)
class RosterRow:
    booking: Booking
    member_name: str


@dataclass(frozen=True)
class MemberBookingRow:
    booking: Booking
    gym_class: GymClass


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_for_organization(self, organization_id: str, booking_id: str) -> Optional[Booking]:
        try:
            result = (
                self.db.query(Booking)
                .filter(Booking.id == booking_id, Booking.organization_id == organization_id)
                .populate_existing()
                .first()
            )
            return cast(Optional[Booking], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}") from e

    def get_active_for_member_class(
        self, organization_id: str, class_id: str, member_id: str
    ) -> Optional[Booking]:
        """The member's non-cancelled booking for a class, if any."""
        try:
            result = (
                self.db.query(Booking)
                .filter(
                    Booking.organization_id == organization_id,
                    Booking.class_id == class_id,
                    Booking.member_id == member_id,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .first()
            )
            return cast(Optional[Booking], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking existing booking: {str(e)}")
            raise RepositoryException(f"Failed to check existing booking: {str(e)}") from e

    def list_waitlist(self, organization_id: str, class_id: str) -> List[Booking]:
        """Waitlisted bookings for a class in queue order."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.organization_id == organization_id,
                    Booking.class_id == class_id,
                    Booking.status == BookingStatus.WAITLIST.value,
                )
                .order_by(
                    Booking.waitlist_position.asc(),
                    Booking.created_at.asc(),
                    Booking.id.asc(),
                )
                .populate_existing()
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading waitlist for class {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to load waitlist: {str(e)}") from e

    def bulk_update_waitlist_positions(self, positions: Dict[str, int]) -> int:
        """
        Apply new waitlist positions in a single UPDATE.

        Pending ORM changes are flushed first so the statement sees them.

        Args:
            positions: booking id -> new 1-based position

        Returns:
            Number of rows updated
        """
        if not positions:
            return 0

        try:
            self.db.flush()
            stmt = (
                update(Booking)
                .where(Booking.id.in_(list(positions.keys())))
                .values(waitlist_position=case(positions, value=Booking.id))
                .execution_options(synchronize_session="fetch")
            )
            result = self.db.execute(stmt)
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error renumbering waitlist: {str(e)}")
            raise RepositoryException(f"Failed to renumber waitlist: {str(e)}") from e

    def list_member_bookings_between(
        self,
        organization_id: str,
        member_id: str,
        start_utc: datetime,
        end_utc: datetime,
    ) -> List[DayBookingRow]:
        """
        Member bookings counted against the daily limit whose class starts in [start, end).
        """
        try:
            rows = (
                self.db.query(
                    Booking.id,
                    GymClass.id,
                    GymClass.name,
                    GymClass.start_time,
                    Booking.status,
                )
                .join(GymClass, GymClass.id == Booking.class_id)
                .filter(
                    Booking.organization_id == organization_id,
                    Booking.member_id == member_id,
                    Booking.status.in_(COUNTED_STATUSES),
                    GymClass.start_time >= start_utc,
                    GymClass.start_time < end_utc,
                )
                .order_by(GymClass.start_time.asc())
                .all()
            )
            return [
                DayBookingRow(
                    booking_id=booking_id,
                    class_id=class_id,
                    class_name=class_name,
                    start_time=start_time,
                    status=status,
                )
                for booking_id, class_id, class_name, start_time, status in rows
            ]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading day bookings for member {member_id}: {str(e)}")
            raise RepositoryException(f"Failed to load member bookings: {str(e)}") from e

    def list_class_roster(self, organization_id: str, class_id: str) -> List[RosterRow]:
        """Every booking for a class with the member's name, oldest first."""
        try:
            rows = (
                self.db.query(Booking, Member.full_name)
                .join(Member, Member.id == Booking.member_id)
                .filter(
                    Booking.organization_id == organization_id,
                    Booking.class_id == class_id,
                )
                .order_by(Booking.created_at.asc(), Booking.id.asc())
                .all()
            )
            return [RosterRow(booking=booking, member_name=name) for booking, name in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading roster for class {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to load class roster: {str(e)}") from e

    def list_member_bookings(
        self,
        organization_id: str,
        member_id: str,
        statuses: Sequence[str],
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> List[MemberBookingRow]:
        """
        A member's bookings joined with their classes, ordered by class start.

        Args:
            statuses: booking statuses to include
            starts_from: only classes starting at or after this instant
            starts_before: only classes starting strictly before this instant
            newest_first: latest class first instead of soonest first
        """
        try:
            query = (
                self.db.query(Booking, GymClass)
                .join(GymClass, GymClass.id == Booking.class_id)
                .filter(
                    Booking.organization_id == organization_id,
                    Booking.member_id == member_id,
                    Booking.status.in_(list(statuses)),
                )
            )
            if starts_from is not None:
                query = query.filter(GymClass.start_time >= starts_from)
            if starts_before is not None:
                query = query.filter(GymClass.start_time < starts_before)
            order = GymClass.start_time.desc() if newest_first else GymClass.start_time.asc()
            rows = query.order_by(order, Booking.id.asc()).all()
            return [
                MemberBookingRow(booking=booking, gym_class=gym_class)
                for booking, gym_class in rows
            ]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading bookings for member {member_id}: {str(e)}")
            raise RepositoryException(f"Failed to load member bookings: {str(e)}") from e
