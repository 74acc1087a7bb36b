# backend/gym_booking/repositories/organization_repository.py
"""Data access for organizations and members."""

from typing import Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.member import Member
from ..models.organization import Organization
from .base_repository import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    def __init__(self, db: Session):
        super().__init__(db, Organization)


class MemberRepository(BaseRepository[Member]):
    def __init__(self, db: Session):
        super().__init__(db, Member)

    def get_for_organization(self, organization_id: str, member_id: str) -> Optional[Member]:
        try:
            result = (
                self.db.query(Member)
                .filter(Member.id == member_id, Member.organization_id == organization_id)
                .first()
            )
            return cast(Optional[Member], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading member {member_id}: {str(e)}")
            raise RepositoryException(f"Failed to load member: {str(e)}") from e
