# backend/gym_booking/api/dependencies/services.py
"""
Service layer dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import ClockSource, SystemClock
from ...services.booking_admission_engine import BookingAdmissionEngine
from .database import get_db

_system_clock = SystemClock()


def get_clock() -> ClockSource:
    """Clock used for admission decisions; overridden in tests."""
    return _system_clock


def get_booking_engine(
    db: Session = Depends(get_db),
    clock: ClockSource = Depends(get_clock),
) -> BookingAdmissionEngine:
    """Get the booking admission engine for this request."""
    return BookingAdmissionEngine(db, clock=clock)
