# backend/gym_booking/models/member.py
"""
Member model.

Read-only from the booking engine's point of view: the membership gate looks
at account status and the current membership period.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import MemberStatus
from ..database import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), ForeignKey("organizations.id"), nullable=False)
    full_name = Column(String(200), nullable=False, default="")

    status = Column(String(20), nullable=False, default=MemberStatus.ACTIVE.value)
    # NULL until the member buys a plan
    membership_status = Column(String(20), nullable=True)
    membership_end_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (Index("ix_members_organization_id", "organization_id"),)

    def __repr__(self) -> str:
        return (
            f"<Member {self.id}: org={self.organization_id}, status={self.status}, "
            f"membership={self.membership_status} until {self.membership_end_date}>"
        )
