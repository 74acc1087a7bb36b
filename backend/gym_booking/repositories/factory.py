# backend/gym_booking/repositories/factory.py
"""
Repository Factory for the gym booking backend

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .class_repository import ClassRepository
    from .organization_repository import MemberRepository, OrganizationRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_class_repository(db: Session) -> "ClassRepository":
        from .class_repository import ClassRepository

        return ClassRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_organization_repository(db: Session) -> "OrganizationRepository":
        from .organization_repository import OrganizationRepository

        return OrganizationRepository(db)

    @staticmethod
    def create_member_repository(db: Session) -> "MemberRepository":
        from .organization_repository import MemberRepository

        return MemberRepository(db)
