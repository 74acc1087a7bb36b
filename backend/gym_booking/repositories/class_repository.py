# backend/gym_booking/repositories/class_repository.py
"""Data access for scheduled classes."""

import logging
from typing import Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.gym_class import GymClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClassRepository(BaseRepository[GymClass]):
    def __init__(self, db: Session):
        super().__init__(db, GymClass)

    def get_for_organization(
        self, organization_id: str, class_id: str, for_update: bool = False
    ) -> Optional[GymClass]:
        """
        Fetch a class scoped to its organization.

        With ``for_update`` the row is locked until the surrounding transaction
        ends; every seat or waitlist mutation for the class goes through this
        lock. SQLite has no row locks; its transactions already hold the
        database write lock (BEGIN IMMEDIATE).
        """
        try:
            query = self.db.query(GymClass).filter(
                GymClass.id == class_id,
                GymClass.organization_id == organization_id,
            )
            if for_update:
                if self.dialect_name != "sqlite":
                    query = query.with_for_update()
                # Re-read even if the instance is already in the identity map
                query = query.populate_existing()
            return cast(Optional[GymClass], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading class {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to load class: {str(e)}") from e

    def get_for_update(self, organization_id: str, class_id: str) -> Optional[GymClass]:
        return self.get_for_organization(organization_id, class_id, for_update=True)
