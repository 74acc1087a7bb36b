# backend/gym_booking/core/enums.py
"""
Core enums for the gym booking backend.

These values are persisted as plain strings, so members are `str` enums.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Who initiated a booking mutation."""

    STAFF = "staff"
    MEMBER = "member"


class MembershipCode(str, Enum):
    """Reasons the membership gate can refuse a booking."""

    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    MEMBER_INACTIVE = "MEMBER_INACTIVE"
    NO_MEMBERSHIP = "NO_MEMBERSHIP"
    MEMBERSHIP_EXPIRED = "MEMBERSHIP_EXPIRED"
    MEMBERSHIP_NOT_ACTIVE = "MEMBERSHIP_NOT_ACTIVE"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    FROZEN = "frozen"


class BookingListScope(str, Enum):
    """Which slice of a member's bookings to list."""

    UPCOMING = "upcoming"
    HISTORY = "history"
