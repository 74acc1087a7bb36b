"""Storage error classification, transaction handling and conflict retries."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from gym_booking.core.exceptions import (
    ClassFull,
    RepositoryException,
    StorageConflict,
    StorageError,
    StorageTimeout,
)
from gym_booking.database import with_db_retry
from gym_booking.services.base import BaseService, classify_storage_error


class _PgError(Exception):
    def __init__(self, pgcode: str):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


def _operational(orig: Exception) -> OperationalError:
    return OperationalError("SELECT 1", {}, orig)


@pytest.mark.parametrize("pgcode", ["40001", "40P01", "55P03"])
def test_serialization_and_lock_failures_are_conflicts(pgcode: str) -> None:
    result = classify_storage_error(_operational(_PgError(pgcode)))

    assert isinstance(result, StorageConflict)
    assert result.details["pgcode"] == pgcode


def test_statement_timeout_is_storage_timeout() -> None:
    assert isinstance(classify_storage_error(_operational(_PgError("57014"))), StorageTimeout)


def test_pool_timeout_is_storage_timeout() -> None:
    result = classify_storage_error(PoolTimeoutError("QueuePool limit reached"))

    assert isinstance(result, StorageTimeout)
    assert result.details["reason"] == "pool_timeout"


def test_sqlite_busy_is_conflict() -> None:
    result = classify_storage_error(_operational(sqlite3.OperationalError("database is locked")))

    assert isinstance(result, StorageConflict)


def test_repository_wrapper_is_unwrapped() -> None:
    wrapper = RepositoryException("Failed to load class")
    wrapper.__cause__ = _operational(_PgError("40P01"))

    assert isinstance(classify_storage_error(wrapper), StorageConflict)


def test_other_failures_are_plain_storage_errors() -> None:
    result = classify_storage_error(IntegrityError("INSERT", {}, _PgError("23514")))

    assert type(result) is StorageError
    assert result.code == "STORAGE_ERROR"


class TestTransaction:
    def test_commits_on_success(self) -> None:
        db = MagicMock()
        service = BaseService(db)

        with service.transaction():
            pass

        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_domain_errors_roll_back_and_pass_through(self) -> None:
        db = MagicMock()
        service = BaseService(db)

        with pytest.raises(ClassFull):
            with service.transaction():
                raise ClassFull("c1", 1)

        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    def test_storage_failures_are_classified(self) -> None:
        db = MagicMock()
        db.commit.side_effect = _operational(_PgError("40001"))
        service = BaseService(db)

        with pytest.raises(StorageConflict) as exc_info:
            with service.transaction():
                pass

        assert isinstance(exc_info.value.__cause__, OperationalError)
        db.rollback.assert_called_once()


class _MeteredService(BaseService):
    @BaseService.measure_operation("probe")
    def probe(self, fail: bool = False) -> str:
        if fail:
            raise ClassFull("c1", 1)
        return "ok"


def test_measure_operation_records_success_rate() -> None:
    service = _MeteredService(MagicMock())

    assert service.probe() == "ok"
    with pytest.raises(ClassFull):
        service.probe(fail=True)

    metrics = service.get_metrics()["probe"]
    assert metrics["count"] == 2
    assert metrics["success_rate"] == 0.5


class TestWithDbRetry:
    @pytest.fixture(autouse=True)
    def _no_sleep(self, monkeypatch: pytest.MonkeyPatch) -> list[float]:
        delays: list[float] = []
        monkeypatch.setattr("gym_booking.database.time.sleep", delays.append)
        return delays

    def test_retries_conflict_once_then_succeeds(self) -> None:
        func = MagicMock(side_effect=[StorageConflict(), "ok"])

        assert with_db_retry("reserve", func) == "ok"
        assert func.call_count == 2

    def test_gives_up_after_max_attempts(self) -> None:
        func = MagicMock(side_effect=StorageConflict())

        with pytest.raises(StorageConflict):
            with_db_retry("reserve", func, max_attempts=2)
        assert func.call_count == 2

    def test_timeouts_are_not_retried(self) -> None:
        func = MagicMock(side_effect=StorageTimeout())

        with pytest.raises(StorageTimeout):
            with_db_retry("reserve", func)
        func.assert_called_once()

    def test_domain_errors_are_not_retried(self) -> None:
        func = MagicMock(side_effect=ClassFull("c1", 1))

        with pytest.raises(ClassFull):
            with_db_retry("reserve", func)
        func.assert_called_once()
