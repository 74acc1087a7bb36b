from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from gym_booking.core.messages import get_message
from gym_booking.services.membership_gate import MemberRecordMembershipGate

# 2024-03-02 05:30 UTC is 2024-03-01 23:30 in Mexico City
CLASS_START = datetime(2024, 3, 2, 5, 30, tzinfo=timezone.utc)


def make_member(**overrides: object) -> SimpleNamespace:
    fields = {
        "id": "member-1",
        "status": "active",
        "membership_status": "active",
        "membership_end_date": date(2024, 12, 31),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def gate() -> MemberRecordMembershipGate:
    service = MemberRecordMembershipGate(MagicMock())
    service.member_repository = MagicMock()
    return service


def _validate(
    gate: MemberRecordMembershipGate,
    member: SimpleNamespace | None,
    timezone_name: str = "America/Mexico_City",
):
    gate.member_repository.get_for_organization.return_value = member
    return gate.validate("member-1", "org-1", CLASS_START, timezone_name)


def test_active_member_can_book(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, make_member())

    assert result.can_book
    assert result.error_code is None


def test_unknown_member(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, None)

    assert not result.can_book
    assert result.error_code == "MEMBER_NOT_FOUND"


@pytest.mark.parametrize("status", ["inactive", "suspended", "cancelled"])
def test_inactive_account_is_checked_first(gate: MemberRecordMembershipGate, status: str) -> None:
    result = _validate(gate, make_member(status=status, membership_end_date=None))

    assert result.error_code == "MEMBER_INACTIVE"


def test_missing_membership(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, make_member(membership_end_date=None))

    assert result.error_code == "NO_MEMBERSHIP"
    assert result.error_message == get_message("no_membership")


def test_membership_ending_on_local_class_day_is_valid(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, make_member(membership_end_date=date(2024, 3, 1)))

    assert result.can_book


def test_class_day_follows_given_timezone(gate: MemberRecordMembershipGate) -> None:
    # Same instant is already 2024-03-02 in UTC
    result = _validate(gate, make_member(membership_end_date=date(2024, 3, 1)), "UTC")

    assert result.error_code == "MEMBERSHIP_EXPIRED"


def test_membership_expired_before_class_day(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, make_member(membership_end_date=date(2024, 2, 29)))

    assert result.error_code == "MEMBERSHIP_EXPIRED"
    assert result.error_message == get_message("membership_expired", end_date="29/02/2024")


def test_frozen_membership_is_not_active(gate: MemberRecordMembershipGate) -> None:
    result = _validate(gate, make_member(membership_status="frozen"))

    assert result.error_code == "MEMBERSHIP_NOT_ACTIVE"
