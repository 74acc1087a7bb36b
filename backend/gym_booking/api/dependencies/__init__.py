"""
FastAPI dependencies.
"""

from .database import get_db
from .services import get_booking_engine, get_clock

__all__ = ["get_booking_engine", "get_clock", "get_db"]
