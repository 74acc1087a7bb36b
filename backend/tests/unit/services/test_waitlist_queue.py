"""Unit coverage for WaitlistQueue ordering and renumbering."""

from __future__ import annotations

from unittest.mock import MagicMock

from gym_booking.core.ulid_helper import generate_ulid
from gym_booking.models.booking import Booking, BookingStatus
from gym_booking.services.waitlist_queue import WaitlistQueue, compute_positions

ORG_ID = generate_ulid()
CLASS_ID = generate_ulid()


def _waitlisted(position: int) -> Booking:
    return Booking(
        id=generate_ulid(),
        class_id=CLASS_ID,
        member_id=generate_ulid(),
        status=BookingStatus.WAITLIST.value,
        waitlist_position=position,
    )


def _queue(*positions: int) -> tuple[WaitlistQueue, MagicMock]:
    repo = MagicMock()
    return WaitlistQueue(CLASS_ID, [_waitlisted(p) for p in positions], repo), repo


def test_compute_positions_only_reports_moved_entries() -> None:
    first, second, third = _waitlisted(1), _waitlisted(3), _waitlisted(4)

    assert compute_positions([first, second, third]) == {second.id: 2, third.id: 3}


def test_compute_positions_contiguous_queue_is_unchanged() -> None:
    assert compute_positions([_waitlisted(1), _waitlisted(2)]) == {}


def test_load_reads_waitlist_from_repository() -> None:
    repo = MagicMock()
    entries = [_waitlisted(1)]
    repo.list_waitlist.return_value = entries

    queue = WaitlistQueue.load(repo, ORG_ID, CLASS_ID)

    repo.list_waitlist.assert_called_once_with(ORG_ID, CLASS_ID)
    assert len(queue) == 1
    assert queue.peek_head() is entries[0]


def test_enqueue_appends_at_tail() -> None:
    queue, _ = _queue(1, 2)
    booking = Booking(id=generate_ulid(), class_id=CLASS_ID, status=BookingStatus.CONFIRMED.value)

    position = queue.enqueue(booking)

    assert position == 3
    assert booking.status == BookingStatus.WAITLIST.value
    assert booking.waitlist_position == 3
    assert queue.next_position == 4


def test_promote_head_confirms_earliest_entry() -> None:
    queue, _ = _queue(1, 2)
    head = queue.peek_head()

    promoted = queue.promote_head()

    assert promoted is head
    assert promoted.status == BookingStatus.CONFIRMED.value
    assert promoted.waitlist_position is None
    assert len(queue) == 1


def test_promote_head_on_empty_queue_returns_none() -> None:
    queue, _ = _queue()

    assert queue.promote_head() is None


def test_remove_unknown_booking_is_noop() -> None:
    queue, _ = _queue(1)

    assert queue.remove(_waitlisted(5)) is False
    assert len(queue) == 1


def test_renumber_after_promotion_closes_gap() -> None:
    queue, repo = _queue(1, 2, 3)
    queue.promote_head()
    remaining = queue.entries

    moved = queue.renumber()

    assert moved == {remaining[0].id: 1, remaining[1].id: 2}
    repo.bulk_update_waitlist_positions.assert_called_once_with(moved)


def test_renumber_after_middle_removal() -> None:
    queue, _ = _queue(1, 2, 3)
    first, middle, last = queue.entries

    queue.remove(middle)
    moved = queue.renumber()

    assert moved == {last.id: 2}
    assert first.id not in moved


def test_renumber_without_gaps_skips_update() -> None:
    queue, repo = _queue(1, 2)

    assert queue.renumber() == {}
    repo.bulk_update_waitlist_positions.assert_not_called()
