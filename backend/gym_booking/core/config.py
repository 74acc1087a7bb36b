# backend/gym_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )
    log_level: str = Field(default="INFO", description="Root log level for the API process")
    is_testing: bool = Field(default=False, description="Force the test database URL")

    database_url: str = Field(
        default=f"sqlite:///{_BACKEND_ROOT / 'gym_booking.db'}",
        description="SQLAlchemy URL for the primary database",
    )
    test_database_url: str = Field(
        default=f"sqlite:///{_BACKEND_ROOT / 'gym_booking_test.db'}",
        description="SQLAlchemy URL used when is_testing is set",
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout_seconds: int = Field(
        default=5, ge=1, description="Seconds to wait for a pooled connection"
    )
    db_statement_timeout_ms: int = Field(
        default=15000,
        ge=100,
        description="Statement timeout (PostgreSQL) or busy timeout (SQLite) in milliseconds",
    )

    default_timezone: str = Field(
        default="America/Mexico_City",
        description="Zone used when an organization has no timezone configured",
    )
    default_locale: Literal["es", "en"] = Field(
        default="es", description="Locale for admission messages returned to clients"
    )
    storage_conflict_retries: int = Field(
        default=1,
        ge=0,
        le=3,
        description="Times a serialization conflict or deadlock is retried per admission call",
    )
    default_member_cancel_reason_key: str = Field(
        default="member_cancelled",
        description="Message key used when a member cancels without a reason",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def get_database_url(self) -> str:
        """Resolve the database URL for the current process."""
        if self.is_testing or is_running_tests():
            return self.test_database_url
        return self.database_url


settings = Settings()
