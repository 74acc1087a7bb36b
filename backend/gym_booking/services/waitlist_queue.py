# backend/gym_booking/services/waitlist_queue.py
"""
FIFO waitlist for one class.

Loaded while the class row lock is held. Positions are 1-based and
contiguous in enqueue order; after any removal ``renumber`` closes the gap
with one batched UPDATE.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.booking import Booking, BookingStatus
from ..repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


def compute_positions(entries: Sequence[Booking]) -> Dict[str, int]:
    """
    New positions for entries whose stored position is no longer their rank.

    ``entries`` must already be in queue order.
    """
    changes: Dict[str, int] = {}
    for rank, entry in enumerate(entries, start=1):
        if entry.waitlist_position != rank:
            changes[entry.id] = rank
    return changes


class WaitlistQueue:
    def __init__(self, class_id: str, entries: List[Booking], booking_repository: BookingRepository):
        self.class_id = class_id
        self._entries = entries
        self.booking_repository = booking_repository

    @classmethod
    def load(
        cls, booking_repository: BookingRepository, organization_id: str, class_id: str
    ) -> "WaitlistQueue":
        entries = booking_repository.list_waitlist(organization_id, class_id)
        return cls(class_id, entries, booking_repository)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[Booking]:
        return list(self._entries)

    @property
    def next_position(self) -> int:
        return len(self._entries) + 1

    def enqueue(self, booking: Booking) -> int:
        """Append a booking at the tail and return its position."""
        position = self.next_position
        booking.status = BookingStatus.WAITLIST.value
        booking.waitlist_position = position
        self._entries.append(booking)
        return position

    def peek_head(self) -> Optional[Booking]:
        return self._entries[0] if self._entries else None

    def promote_head(self) -> Optional[Booking]:
        """Dequeue the earliest entry and give it a confirmed seat."""
        if not self._entries:
            return None
        head = self._entries.pop(0)
        head.promote()
        return head

    def remove(self, booking: Booking) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.id == booking.id:
                del self._entries[index]
                return True
        return False

    def renumber(self) -> Dict[str, int]:
        """
        Close gaps so positions run 1..N again.

        Returns:
            booking id -> new position, for rows that moved
        """
        changes = compute_positions(self._entries)
        if changes:
            self.booking_repository.bulk_update_waitlist_positions(changes)
            logger.info(
                f"Renumbered {len(changes)} waitlist entries",
                extra={"class_id": self.class_id, "moved": len(changes)},
            )
        return changes
