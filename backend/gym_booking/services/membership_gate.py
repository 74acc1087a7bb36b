# backend/gym_booking/services/membership_gate.py
"""
Membership gate.

Answers one question for the admission engine: does this member's account
and membership allow booking a class that starts at a given instant? The
membership is valid through its end date as seen in the organization's
timezone on the class day.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from ..core.enums import MembershipCode, MembershipStatus, MemberStatus
from ..core.messages import get_message
from ..core.timezone_utils import local_date_for
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipCheck:
    can_book: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls) -> "MembershipCheck":
        return cls(can_book=True)

    @classmethod
    def refuse(cls, code: MembershipCode, message: str) -> "MembershipCheck":
        return cls(can_book=False, error_code=code.value, error_message=message)


class MembershipGate(Protocol):
    def validate(
        self,
        member_id: str,
        organization_id: str,
        class_start_time: datetime,
        timezone_name: str,
    ) -> MembershipCheck: ...


class MemberRecordMembershipGate:
    """Evaluates the member row: account status first, then the membership period."""

    def __init__(self, db: Session):
        self.member_repository = RepositoryFactory.create_member_repository(db)

    def validate(
        self,
        member_id: str,
        organization_id: str,
        class_start_time: datetime,
        timezone_name: str,
    ) -> MembershipCheck:
        member = self.member_repository.get_for_organization(organization_id, member_id)
        if member is None:
            return MembershipCheck.refuse(
                MembershipCode.MEMBER_NOT_FOUND, get_message("member_not_found")
            )

        if member.status != MemberStatus.ACTIVE.value:
            return MembershipCheck.refuse(
                MembershipCode.MEMBER_INACTIVE, get_message("member_inactive")
            )

        if member.membership_end_date is None:
            return MembershipCheck.refuse(MembershipCode.NO_MEMBERSHIP, get_message("no_membership"))

        class_date = local_date_for(class_start_time, timezone_name)
        if member.membership_end_date < class_date:
            logger.info(
                "Membership expired before class date",
                extra={
                    "member_id": member_id,
                    "membership_end_date": member.membership_end_date.isoformat(),
                    "class_date": class_date.isoformat(),
                },
            )
            return MembershipCheck.refuse(
                MembershipCode.MEMBERSHIP_EXPIRED,
                get_message(
                    "membership_expired",
                    end_date=member.membership_end_date.strftime("%d/%m/%Y"),
                ),
            )

        if member.membership_status != MembershipStatus.ACTIVE.value:
            return MembershipCheck.refuse(
                MembershipCode.MEMBERSHIP_NOT_ACTIVE, get_message("membership_not_active")
            )

        return MembershipCheck.ok()
