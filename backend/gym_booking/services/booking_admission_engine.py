# backend/gym_booking/services/booking_admission_engine.py
"""
Booking admission engine.

Single entry point for every booking mutation, shared by the staff and
member paths: reserve, cancel, check-in and no-show. Each call runs in one
transaction that first locks the class row, so seat counts and waitlist
positions for a class are only ever changed by one transaction at a time.

Reservation checks run in a fixed order and the first failure wins:
class available, not started, window not closed, window open, daily limit,
membership, no existing booking. Only then is a seat or waitlist place
allocated.

Read views for staff and members (class roster, member bookings, daily
limit counts) are served here too; they take no lock.
"""

from dataclasses import dataclass
from datetime import date, datetime
import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from sqlalchemy.orm import Session

from ..core.clock import ClockSource, SystemClock
from ..core.config import settings
from ..core.enums import ActorRole, BookingListScope
from ..core.exceptions import (
    AlreadyBooked,
    AlreadyFinal,
    BookingNotFound,
    BookingWindowClosed,
    BookingWindowNotYetOpen,
    CancellationDeadlinePassed,
    ClassAlreadyStarted,
    ClassUnavailable,
    DailyLimitReached,
    DomainException,
    DuplicateRecordException,
    InvalidBookingTransition,
    MemberNotFound,
    MembershipInvalid,
    StorageConflict,
)
from ..core.messages import get_message
from ..core.ulid_helper import generate_ulid
from ..database import with_db_retry
from ..models.booking import SEATED_STATUSES, Booking, BookingStatus
from ..models.gym_class import GymClass
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import MemberBookingRow, RosterRow
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_limits import BookingLimitsProvider, OrganizationBookingLimitsProvider
from .capacity_ledger import CapacityLedger
from .daily_limit_policy import DailyCount, DailyLimitPolicy
from .membership_gate import MemberRecordMembershipGate, MembershipGate
from .waitlist_queue import WaitlistQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Actor:
    """Who is asking for a booking mutation."""

    role: ActorRole
    member_id: Optional[str] = None

    @classmethod
    def staff(cls) -> "Actor":
        return cls(role=ActorRole.STAFF)

    @classmethod
    def member(cls, member_id: str) -> "Actor":
        return cls(role=ActorRole.MEMBER, member_id=member_id)

    @property
    def is_member(self) -> bool:
        return self.role == ActorRole.MEMBER


def _ceil_div(seconds: float, unit: int) -> int:
    return max(int(math.ceil(seconds / unit)), 0)


@dataclass(frozen=True)
class ClassRoster:
    """A class with its bookings split into seated members, the queue and cancellations."""

    gym_class: GymClass
    seated: List[RosterRow]
    waitlist: List[RosterRow]
    cancelled: List[RosterRow]


_UPCOMING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.WAITLIST.value)


class BookingAdmissionEngine(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[ClockSource] = None,
        membership_gate: Optional[MembershipGate] = None,
        limits_provider: Optional[BookingLimitsProvider] = None,
        daily_limit_policy: Optional[DailyLimitPolicy] = None,
    ):
        super().__init__(db)
        self.clock = clock or SystemClock()
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.member_repository = RepositoryFactory.create_member_repository(db)
        self.limits_provider = limits_provider or OrganizationBookingLimitsProvider(db)
        self.membership_gate = membership_gate or MemberRecordMembershipGate(db)
        self.daily_limit_policy = daily_limit_policy or DailyLimitPolicy(db)

    # ------------------------------------------------------------------
    # Reserve
    # ------------------------------------------------------------------

    @BaseService.measure_operation("reserve")
    def reserve(self, organization_id: str, class_id: str, member_id: str) -> Booking:
        """
        Reserve a seat, or a waitlist place when the class is full.

        Raises:
            DomainException: the first failed precondition, ClassFull/WaitlistFull
                when no place is left, or a storage error
        """
        try:
            booking = self._with_retry(
                "reserve", lambda: self._reserve_once(organization_id, class_id, member_id)
            )
        except DomainException as exc:
            prometheus_metrics.record_admission(exc.code)
            self.logger.info(
                f"Reservation rejected: {exc.code}",
                extra={
                    "organization_id": organization_id,
                    "class_id": class_id,
                    "member_id": member_id,
                    "code": exc.code,
                },
            )
            raise
        prometheus_metrics.record_admission(booking.status)
        return booking

    def _reserve_once(self, organization_id: str, class_id: str, member_id: str) -> Booking:
        with self.transaction():
            gym_class = self.class_repository.get_for_update(organization_id, class_id)
            if gym_class is None or gym_class.is_cancelled:
                raise ClassUnavailable(class_id, cancelled=gym_class is not None)

            now = self.clock.now()
            self._check_booking_window(gym_class, now)

            limits = self.limits_provider.get(organization_id)
            daily = self.daily_limit_policy.check(
                organization_id, member_id, gym_class.starts_at, limits
            )
            if not daily.can_book:
                raise DailyLimitReached(
                    limit=int(daily.limit or 0),
                    current_count=daily.current_count,
                    target_date=daily.target_date,
                    timezone_name=daily.timezone,
                    existing_bookings=daily.existing_bookings,
                )

            membership = self.membership_gate.validate(
                member_id, organization_id, gym_class.starts_at, limits.timezone
            )
            if not membership.can_book:
                raise MembershipInvalid(
                    membership.error_code or "MEMBERSHIP_INVALID",
                    membership.error_message or get_message("no_membership"),
                )

            existing = self.booking_repository.get_active_for_member_class(
                organization_id, class_id, member_id
            )
            if existing is not None:
                raise AlreadyBooked(class_id, member_id, existing.status)

            waitlist = WaitlistQueue.load(self.booking_repository, organization_id, class_id)
            ledger = CapacityLedger(gym_class, waitlist)

            if ledger.has_open_seat:
                ledger.admit()
                booking = self._insert_booking(
                    gym_class, member_id, BookingStatus.CONFIRMED, None, now
                )
            elif ledger.can_waitlist:
                booking = self._insert_booking(
                    gym_class, member_id, BookingStatus.WAITLIST, waitlist.next_position, now
                )
                waitlist.enqueue(booking)
            else:
                raise ledger.waitlist_rejection()

            self.log_operation(
                "reserve",
                organization_id=organization_id,
                class_id=class_id,
                member_id=member_id,
                booking_id=booking.id,
                status=booking.status,
                waitlist_position=booking.waitlist_position,
                confirmed_count=ledger.confirmed_count,
            )
            return booking

    def _check_booking_window(self, gym_class: GymClass, now: datetime) -> None:
        starts_at = gym_class.starts_at
        if now >= starts_at:
            raise ClassAlreadyStarted(gym_class.id, starts_at)

        closes_at = gym_class.booking_closes_at
        if now > closes_at:
            raise BookingWindowClosed(int(gym_class.booking_closes_minutes or 0), closes_at)

        opens_at = gym_class.booking_opens_at
        if now < opens_at:
            remaining = (opens_at - now).total_seconds()
            raise BookingWindowNotYetOpen(
                booking_opens_hours=int(gym_class.booking_opens_hours or 0),
                opens_at=opens_at,
                hours_until_open=_ceil_div(remaining, 3600),
                days_until_open=_ceil_div(remaining, 86400),
            )

    def _insert_booking(
        self,
        gym_class: GymClass,
        member_id: str,
        status: BookingStatus,
        waitlist_position: Optional[int],
        now: datetime,
    ) -> Booking:
        try:
            return self.booking_repository.create(
                id=generate_ulid(),
                organization_id=gym_class.organization_id,
                class_id=gym_class.id,
                member_id=member_id,
                status=status.value,
                waitlist_position=waitlist_position,
                created_at=now,
            )
        except DuplicateRecordException as exc:
            # A concurrent reservation won the unique index
            raise AlreadyBooked(gym_class.id, member_id) from exc

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    @BaseService.measure_operation("cancel")
    def cancel(
        self,
        organization_id: str,
        booking_id: str,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Cancel a booking, freeing its seat or waitlist place.

        A freed seat goes to the head of the waitlist in the same transaction.
        Members may only cancel their own bookings and only before the
        class's cancellation deadline; staff bypass the deadline.
        """
        return self._with_retry(
            "cancel", lambda: self._cancel_once(organization_id, booking_id, actor, reason)
        )

    def _cancel_once(
        self,
        organization_id: str,
        booking_id: str,
        actor: Actor,
        reason: Optional[str],
    ) -> Booking:
        with self.transaction():
            booking, gym_class = self._load_locked_booking(organization_id, booking_id, actor)
            if booking.is_terminal:
                raise AlreadyFinal(booking.id, booking.status)

            now = self.clock.now()
            if actor.is_member:
                deadline = gym_class.cancellation_deadline
                if now > deadline:
                    raise CancellationDeadlinePassed(
                        int(gym_class.cancellation_deadline_hours or 0),
                        deadline,
                        started=now >= gym_class.starts_at,
                    )
                if not reason:
                    reason = get_message(settings.default_member_cancel_reason_key)

            waitlist = WaitlistQueue.load(self.booking_repository, organization_id, gym_class.id)
            ledger = CapacityLedger(gym_class, waitlist)
            was_confirmed = booking.status == BookingStatus.CONFIRMED.value

            booking.cancel(actor.role, reason, now)

            promoted: Optional[Booking] = None
            if was_confirmed:
                ledger.release()
                promoted = waitlist.promote_head()
                if promoted is not None:
                    ledger.admit()
                    prometheus_metrics.record_promotion()
            else:
                waitlist.remove(booking)

            moved = waitlist.renumber()
            self.booking_repository.flush()

            self.log_operation(
                "cancel",
                organization_id=organization_id,
                booking_id=booking.id,
                class_id=gym_class.id,
                actor=actor.role.value,
                was_confirmed=was_confirmed,
                promoted_booking_id=promoted.id if promoted else None,
                renumbered=len(moved),
                confirmed_count=ledger.confirmed_count,
            )
            return booking

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------

    @BaseService.measure_operation("check_in")
    def check_in(self, organization_id: str, booking_id: str) -> Booking:
        """Record attendance for a confirmed booking (staff)."""
        return self._with_retry(
            "check_in",
            lambda: self._attendance_once(organization_id, booking_id, BookingStatus.ATTENDED),
        )

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, organization_id: str, booking_id: str) -> Booking:
        """Record that a confirmed member did not attend (staff)."""
        return self._with_retry(
            "mark_no_show",
            lambda: self._attendance_once(organization_id, booking_id, BookingStatus.NO_SHOW),
        )

    def _attendance_once(
        self, organization_id: str, booking_id: str, target: BookingStatus
    ) -> Booking:
        with self.transaction():
            booking, _ = self._load_locked_booking(organization_id, booking_id, Actor.staff())
            if booking.is_terminal:
                raise AlreadyFinal(booking.id, booking.status)
            if booking.status != BookingStatus.CONFIRMED.value:
                raise InvalidBookingTransition(booking.id, booking.status, target.value)

            if target == BookingStatus.ATTENDED:
                booking.check_in(self.clock.now())
            else:
                booking.mark_no_show()
            self.booking_repository.flush()

            self.log_operation(
                target.value,
                organization_id=organization_id,
                booking_id=booking.id,
                class_id=booking.class_id,
            )
            return booking

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @BaseService.measure_operation("daily_limits")
    def daily_limits(
        self, organization_id: str, member_id: str, dates: Iterable[date]
    ) -> Dict[date, DailyCount]:
        """Per-date booking counts for a member, for calendar views."""
        limits = self.limits_provider.get(organization_id)
        return self.daily_limit_policy.check_dates(organization_id, member_id, dates, limits)

    @BaseService.measure_operation("class_roster")
    def class_roster(self, organization_id: str, class_id: str) -> ClassRoster:
        """
        Everyone booked into a class, for the staff class page.

        Seated and cancelled bookings are listed in booking order; the
        waitlist is listed in queue order. Cancelled classes still have a
        roster.
        """
        gym_class = self.class_repository.get_for_organization(organization_id, class_id)
        if gym_class is None:
            raise ClassUnavailable(class_id)

        rows = self.booking_repository.list_class_roster(organization_id, class_id)
        names = {row.booking.id: row.member_name for row in rows}
        queue = self.booking_repository.list_waitlist(organization_id, class_id)
        return ClassRoster(
            gym_class=gym_class,
            seated=[row for row in rows if row.booking.status in SEATED_STATUSES],
            waitlist=[RosterRow(booking=b, member_name=names.get(b.id, "")) for b in queue],
            cancelled=[
                row for row in rows if row.booking.status == BookingStatus.CANCELLED.value
            ],
        )

    @BaseService.measure_operation("member_bookings")
    def member_bookings(
        self,
        organization_id: str,
        member_id: str,
        scope: BookingListScope = BookingListScope.UPCOMING,
    ) -> List[MemberBookingRow]:
        """
        A member's upcoming bookings or class history.

        Upcoming: confirmed and waitlisted bookings for classes that have not
        started yet, soonest first. History: seated bookings for classes that
        already started, latest first.
        """
        if self.member_repository.get_for_organization(organization_id, member_id) is None:
            raise MemberNotFound(member_id)

        now = self.clock.now()
        if scope == BookingListScope.HISTORY:
            return self.booking_repository.list_member_bookings(
                organization_id,
                member_id,
                SEATED_STATUSES,
                starts_before=now,
                newest_first=True,
            )
        return self.booking_repository.list_member_bookings(
            organization_id, member_id, _UPCOMING_STATUSES, starts_from=now
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_locked_booking(
        self, organization_id: str, booking_id: str, actor: Actor
    ) -> Tuple[Booking, GymClass]:
        """
        Load a booking and lock its class.

        The booking is re-read after the lock so its status reflects any
        transaction that held the lock before us.
        """
        booking = self.booking_repository.get_for_organization(organization_id, booking_id)
        if booking is None or (actor.is_member and booking.member_id != actor.member_id):
            raise BookingNotFound(booking_id)

        gym_class = self.class_repository.get_for_update(organization_id, booking.class_id)
        if gym_class is None:
            raise BookingNotFound(booking_id)
        self.booking_repository.refresh(booking)
        return booking, gym_class

    def _with_retry(self, operation: str, func: Callable[[], T]) -> T:
        attempts = {"count": 0}

        def _attempt() -> T:
            attempts["count"] += 1
            if attempts["count"] > 1:
                prometheus_metrics.record_storage_retry(operation)
            return func()

        try:
            return with_db_retry(operation, _attempt)
        except StorageConflict:
            self.logger.error(
                f"{operation} failed after {attempts['count']} attempts on storage conflict"
            )
            raise
