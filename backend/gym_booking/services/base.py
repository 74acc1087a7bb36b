# backend/gym_booking/services/base.py
"""
Base Service Pattern for the gym booking backend

Provides common functionality for all service classes including:
- Transaction management with storage error classification
- Logging
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    DomainException,
    RepositoryException,
    StorageConflict,
    StorageError,
    StorageTimeout,
    is_db_pool_exhaustion,
)
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_PGCODES = frozenset({"40001", "40P01", "55P03"})
# query_canceled (statement_timeout / lock_timeout)
_TIMEOUT_PGCODES = frozenset({"57014"})


def classify_storage_error(exc: BaseException) -> StorageError:
    """
    Map a persistence failure to the storage error callers can act on.

    Repository wrappers are unwrapped to the underlying SQLAlchemy error.
    """
    root: BaseException = exc
    if isinstance(root, RepositoryException) and root.__cause__ is not None:
        root = root.__cause__

    if isinstance(root, PoolTimeoutError) or is_db_pool_exhaustion(root):
        return StorageTimeout(details={"reason": "pool_timeout"})

    if isinstance(root, DBAPIError):
        pgcode = getattr(root.orig, "pgcode", None)
        if pgcode in _CONFLICT_PGCODES:
            return StorageConflict(details={"pgcode": pgcode})
        if pgcode in _TIMEOUT_PGCODES:
            return StorageTimeout(details={"pgcode": pgcode})
        if isinstance(root, OperationalError) and "database is locked" in str(root.orig).lower():
            # SQLite busy timeout expired while waiting for the write lock
            return StorageConflict(details={"reason": "database_locked"})

    return StorageError(details={"error_type": type(root).__name__})


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Logging
    - Transaction handling
    - Performance monitoring
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Commits on success. Any failure rolls back the whole transaction;
        persistence failures are re-raised as StorageConflict, StorageTimeout
        or StorageError, domain exceptions pass through unchanged.

        Usage:
            with self.transaction():
                self.db.add(entity)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except DomainException:
            self.db.rollback()
            raise
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise classify_storage_error(e) from e
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("reserve")
            def reserve(self, ...):
                ...
        """

        F = TypeVar("F", bound=Callable[..., Any])

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                error_type: Optional[str] = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    if hasattr(self, "_record_metric"):
                        self._record_metric(operation_name, elapsed, success)

                    if elapsed > 1.0 and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        class_name = self.__class__.__name__
        metrics = BaseService._class_metrics.setdefault(class_name, {})

        if operation not in metrics:
            metrics[operation] = {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "min_time": float("inf"),
                "max_time": 0.0,
            }

        metric_data = metrics[operation]
        metric_data["count"] += 1
        metric_data["total_time"] += elapsed
        metric_data["min_time"] = min(metric_data["min_time"], elapsed)
        metric_data["max_time"] = max(metric_data["max_time"], elapsed)

        if success:
            metric_data["success_count"] += 1
        else:
            metric_data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics for this service.

        Returns:
            Dictionary with metrics for each measured operation
        """
        metrics = BaseService._class_metrics.get(self.__class__.__name__, {})
        result = {}
        for operation, data in metrics.items():
            count = data["count"]
            if count == 0:
                continue
            result[operation] = {
                "count": count,
                "avg_time": data["total_time"] / count,
                "min_time": data["min_time"],
                "max_time": data["max_time"],
                "success_rate": data["success_count"] / count,
            }
        return result
