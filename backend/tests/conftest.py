from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from gym_booking.core.clock import FixedClock
from gym_booking.core.ulid_helper import generate_ulid
from gym_booking.database import Base, build_engine

# Import models so Base.metadata is populated for create_all.
from gym_booking.models import GymClass, Member, Organization

NOW = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_engine(tmp_path) -> Iterator[Engine]:
    """
    File-backed SQLite engine with the application's locking setup.

    A file (not :memory:) so worker threads in concurrency tests each get
    their own connection to the same database.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'gym_booking_test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def organization(db: Session) -> Organization:
    org = Organization(
        id=generate_ulid(),
        name="Gimnasio Centro",
        timezone="America/Mexico_City",
        max_classes_per_day=None,
    )
    db.add(org)
    db.commit()
    return org


@pytest.fixture
def make_member(db: Session, organization: Organization) -> Callable[..., Member]:
    def _make(**overrides: object) -> Member:
        fields = {
            "id": generate_ulid(),
            "organization_id": organization.id,
            "full_name": "Socio de Prueba",
            "status": "active",
            "membership_status": "active",
            "membership_end_date": date(2030, 12, 31),
        }
        fields.update(overrides)
        member = Member(**fields)
        db.add(member)
        db.commit()
        return member

    return _make


@pytest.fixture
def make_class(db: Session, organization: Organization) -> Callable[..., GymClass]:
    def _make(**overrides: object) -> GymClass:
        start_time = overrides.pop("start_time", NOW + timedelta(days=1))
        fields = {
            "id": generate_ulid(),
            "organization_id": organization.id,
            "name": "Spinning",
            "start_time": start_time,
            "end_time": start_time + timedelta(hours=1),
            "capacity": 10,
            "confirmed_count": 0,
            "waitlist_enabled": True,
            "max_waitlist": 5,
            "booking_opens_hours": 168,
            "booking_closes_minutes": 0,
            "cancellation_deadline_hours": 0,
            "is_cancelled": False,
        }
        fields.update(overrides)
        gym_class = GymClass(**fields)
        db.add(gym_class)
        db.commit()
        return gym_class

    return _make

