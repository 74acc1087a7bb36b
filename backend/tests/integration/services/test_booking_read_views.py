"""Class roster and member booking lists against a real SQLite database."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from gym_booking.core.clock import FixedClock
from gym_booking.core.enums import BookingListScope
from gym_booking.core.exceptions import ClassUnavailable, MemberNotFound
from gym_booking.core.ulid_helper import generate_ulid
from gym_booking.models import Booking, BookingStatus, GymClass
from gym_booking.services.booking_admission_engine import Actor, BookingAdmissionEngine


@pytest.fixture
def engine(db: Session, clock: FixedClock) -> BookingAdmissionEngine:
    return BookingAdmissionEngine(db, clock=clock)


def _add_booking(db: Session, gym_class: GymClass, member_id: str, status: str) -> Booking:
    booking = Booking(
        id=generate_ulid(),
        organization_id=gym_class.organization_id,
        class_id=gym_class.id,
        member_id=member_id,
        status=status,
    )
    db.add(booking)
    db.commit()
    return booking


class TestClassRoster:
    def test_roster_splits_seated_queue_and_cancelled(
        self, engine, organization, make_member, make_class
    ) -> None:
        gym_class = make_class(capacity=1, max_waitlist=3)
        seated = make_member(full_name="Ana")
        leaving = make_member(full_name="Beto")
        second = make_member(full_name="Carla")
        third = make_member(full_name="Dario")
        engine.reserve(organization.id, gym_class.id, seated.id)
        left = engine.reserve(organization.id, gym_class.id, leaving.id)
        engine.reserve(organization.id, gym_class.id, second.id)
        engine.reserve(organization.id, gym_class.id, third.id)
        engine.cancel(organization.id, left.id, Actor.staff())

        roster = engine.class_roster(organization.id, gym_class.id)

        assert roster.gym_class.id == gym_class.id
        assert [(row.member_name, row.booking.status) for row in roster.seated] == [
            ("Ana", "confirmed")
        ]
        assert [(row.member_name, row.booking.waitlist_position) for row in roster.waitlist] == [
            ("Carla", 1),
            ("Dario", 2),
        ]
        assert [row.booking.id for row in roster.cancelled] == [left.id]

    def test_attended_and_no_show_stay_seated(
        self, engine, organization, make_member, make_class
    ) -> None:
        gym_class = make_class()
        attended = engine.reserve(organization.id, gym_class.id, make_member().id)
        missed = engine.reserve(organization.id, gym_class.id, make_member().id)
        engine.check_in(organization.id, attended.id)
        engine.mark_no_show(organization.id, missed.id)

        roster = engine.class_roster(organization.id, gym_class.id)

        assert sorted(row.booking.status for row in roster.seated) == ["attended", "no_show"]
        assert roster.waitlist == []
        assert roster.gym_class.confirmed_count == 2

    def test_cancelled_class_still_has_roster(
        self, engine, organization, make_member, make_class, db
    ) -> None:
        gym_class = make_class()
        booking = engine.reserve(organization.id, gym_class.id, make_member().id)
        gym_class.is_cancelled = True
        db.commit()

        roster = engine.class_roster(organization.id, gym_class.id)

        assert roster.gym_class.is_cancelled
        assert [row.booking.id for row in roster.seated] == [booking.id]

    def test_unknown_class(self, engine, organization) -> None:
        with pytest.raises(ClassUnavailable):
            engine.class_roster(organization.id, generate_ulid())

    def test_class_from_other_organization(self, engine, make_class) -> None:
        gym_class = make_class()

        with pytest.raises(ClassUnavailable):
            engine.class_roster(generate_ulid(), gym_class.id)


class TestMemberBookings:
    def test_upcoming_lists_live_bookings_soonest_first(
        self, db, engine, organization, make_member, make_class, clock
    ) -> None:
        member = make_member()
        later = make_class(start_time=clock.now() + timedelta(days=2))
        sooner = make_class(start_time=clock.now() + timedelta(days=1))
        full = make_class(start_time=clock.now() + timedelta(days=3), capacity=1)
        dropped = make_class(start_time=clock.now() + timedelta(hours=5))
        engine.reserve(organization.id, full.id, make_member().id)
        engine.reserve(organization.id, later.id, member.id)
        engine.reserve(organization.id, sooner.id, member.id)
        queued = engine.reserve(organization.id, full.id, member.id)
        cancelled = engine.reserve(organization.id, dropped.id, member.id)
        engine.cancel(organization.id, cancelled.id, Actor.member(member.id))
        # Started classes belong to history
        _add_booking(
            db, make_class(start_time=clock.now() - timedelta(days=1)), member.id, "confirmed"
        )

        rows = engine.member_bookings(organization.id, member.id, BookingListScope.UPCOMING)

        assert [(row.gym_class.id, row.booking.status) for row in rows] == [
            (sooner.id, "confirmed"),
            (later.id, "confirmed"),
            (full.id, "waitlist"),
        ]
        assert rows[2].booking.id == queued.id
        assert rows[2].booking.waitlist_position == 1

    def test_history_lists_seated_bookings_latest_first(
        self, db, engine, organization, make_member, make_class, clock
    ) -> None:
        member = make_member()
        older = make_class(start_time=clock.now() - timedelta(days=3))
        recent = make_class(start_time=clock.now() - timedelta(days=1))
        skipped = make_class(start_time=clock.now() - timedelta(days=2))
        attended = _add_booking(db, older, member.id, BookingStatus.ATTENDED.value)
        no_show = _add_booking(db, recent, member.id, BookingStatus.NO_SHOW.value)
        _add_booking(db, skipped, member.id, BookingStatus.CANCELLED.value)
        _add_booking(db, recent, make_member().id, BookingStatus.ATTENDED.value)
        engine.reserve(organization.id, make_class().id, member.id)

        rows = engine.member_bookings(organization.id, member.id, BookingListScope.HISTORY)

        assert [row.booking.id for row in rows] == [no_show.id, attended.id]

    def test_class_starting_now_is_upcoming(
        self, engine, organization, make_member, make_class, clock
    ) -> None:
        member = make_member()
        gym_class = make_class(start_time=clock.now() + timedelta(hours=1))
        booking = engine.reserve(organization.id, gym_class.id, member.id)
        clock.advance(hours=1)

        upcoming = engine.member_bookings(organization.id, member.id)
        history = engine.member_bookings(organization.id, member.id, BookingListScope.HISTORY)

        assert [row.booking.id for row in upcoming] == [booking.id]
        assert history == []

    def test_unknown_member(self, engine, organization) -> None:
        with pytest.raises(MemberNotFound):
            engine.member_bookings(organization.id, generate_ulid())

    def test_member_from_other_organization(self, engine, make_member) -> None:
        member = make_member()

        with pytest.raises(MemberNotFound):
            engine.member_bookings(generate_ulid(), member.id)
