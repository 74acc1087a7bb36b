"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
import random
import time
from typing import Any, Callable, Generator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from gym_booking.core.config import settings
from gym_booking.core.exceptions import StorageConflict

logger = logging.getLogger(__name__)

# PostgreSQL: statement_timeout caps lock waits and runaway queries so a stuck
# admission surfaces as StorageTimeout instead of hanging the request.
_POSTGRES_CONNECT_ARGS: dict[str, Any] = {
    "keepalives": 1,
    "keepalives_idle": 15,
    "keepalives_interval": 5,
    "keepalives_count": 3,
    "connect_timeout": 5,
    "application_name": "gym_booking_api",
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Pool and connect arguments for the configured dialect."""
    if db_url.startswith("sqlite"):
        return {
            "future": True,
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.db_statement_timeout_ms / 1000,
            },
        }

    connect_args = dict(_POSTGRES_CONNECT_ARGS)
    connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
    return {
        "future": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "connect_args": connect_args,
    }


def _enable_sqlite_write_locking(sqlite_engine: Engine) -> None:
    """
    Make every SQLite transaction take the database write lock up front.

    pysqlite defers BEGIN until the first write, so two readers could both
    pass the capacity check before either writes. BEGIN IMMEDIATE serializes
    admission transactions the way the class row lock does on PostgreSQL.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(db_url: str) -> Engine:
    """Create an engine for ``db_url`` with this application's pool and locking setup."""
    new_engine = create_engine(db_url, **_build_engine_kwargs(db_url))
    if db_url.startswith("sqlite"):
        _enable_sqlite_write_locking(new_engine)

    @event.listens_for(new_engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    return new_engine


db_url = settings.get_database_url()
engine: Engine = build_engine(db_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


T = TypeVar("T")


def _retry_delay(attempt: int) -> float:
    base = 0.05 * (2 ** (attempt - 1))
    return base + random.uniform(0, 0.05 * attempt)


def with_db_retry(op_name: str, func: Callable[[], T], *, max_attempts: int | None = None) -> T:
    """
    Execute a DB operation, retrying when it fails with StorageConflict.

    ``func`` must run a whole transaction so every attempt starts clean.
    Defaults to one retry (``STORAGE_CONFLICT_RETRIES``).
    """
    if max_attempts is None:
        max_attempts = 1 + settings.storage_conflict_retries

    attempt = 1
    while True:
        try:
            return func()
        except StorageConflict as exc:
            if attempt >= max_attempts:
                raise

            delay = _retry_delay(attempt)
            logger.warning(
                "Storage conflict detected, retrying",
                extra={
                    "event": "db_retry",
                    "op": op_name,
                    "attempt": attempt,
                    "delay": delay,
                    "error": exc.message,
                },
            )
            time.sleep(delay)
            attempt += 1


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "with_db_retry",
]
