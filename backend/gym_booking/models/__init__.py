"""
Database models for the gym booking backend.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import Booking, BookingStatus
from .gym_class import GymClass
from .member import Member
from .organization import Organization

__all__ = [
    "Booking",
    "BookingStatus",
    "GymClass",
    "Member",
    "Organization",
]
