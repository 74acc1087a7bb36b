# backend/gym_booking/init_db.py
"""
Create all tables for the configured database.

Usage:
    python -m gym_booking.init_db
"""

import logging

from sqlalchemy.engine import Engine

from . import models  # noqa: F401  registers tables on Base.metadata
from .database import Base, engine

logger = logging.getLogger(__name__)


def init_db(bind: Engine = engine) -> None:
    logger.info("Creating database tables")
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
