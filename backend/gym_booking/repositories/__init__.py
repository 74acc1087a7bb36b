"""
Repository layer for the gym booking backend.

Repositories encapsulate all SQLAlchemy queries; services never build
queries themselves.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .class_repository import ClassRepository
from .factory import RepositoryFactory
from .organization_repository import MemberRepository, OrganizationRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ClassRepository",
    "IRepository",
    "MemberRepository",
    "OrganizationRepository",
    "RepositoryFactory",
]
