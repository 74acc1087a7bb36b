# backend/gym_booking/services/capacity_ledger.py
"""Seat accounting for one locked class."""

from ..core.exceptions import ClassFull, ConflictException, WaitlistFull
from ..models.gym_class import GymClass
from .waitlist_queue import WaitlistQueue


class CapacityLedger:
    """
    Seat and waitlist counters for a class whose row lock is held.

    ``confirmed_count`` stays within ``0..capacity``: admitting into a full
    class raises, releasing an empty class is a no-op.
    """

    def __init__(self, gym_class: GymClass, waitlist: WaitlistQueue):
        self.gym_class = gym_class
        self.waitlist = waitlist

    @property
    def capacity(self) -> int:
        return int(self.gym_class.capacity)

    @property
    def confirmed_count(self) -> int:
        return int(self.gym_class.confirmed_count or 0)

    @property
    def seats_available(self) -> int:
        return max(self.capacity - self.confirmed_count, 0)

    @property
    def has_open_seat(self) -> bool:
        return self.confirmed_count < self.capacity

    @property
    def waitlist_count(self) -> int:
        return len(self.waitlist)

    @property
    def can_waitlist(self) -> bool:
        return bool(self.gym_class.waitlist_enabled) and self.waitlist_count < int(
            self.gym_class.max_waitlist or 0
        )

    def admit(self) -> int:
        """Consume one seat; returns the new confirmed count."""
        if not self.has_open_seat:
            raise ClassFull(self.gym_class.id, self.capacity)
        self.gym_class.confirmed_count = self.confirmed_count + 1
        return self.confirmed_count

    def release(self) -> int:
        """Free one seat; returns the new confirmed count."""
        if self.confirmed_count > 0:
            self.gym_class.confirmed_count = self.confirmed_count - 1
        return self.confirmed_count

    def waitlist_rejection(self) -> ConflictException:
        """Error for a full class that cannot take another waitlist entry."""
        if not self.gym_class.waitlist_enabled:
            return ClassFull(self.gym_class.id, self.capacity)
        return WaitlistFull(self.gym_class.id, int(self.gym_class.max_waitlist or 0))
