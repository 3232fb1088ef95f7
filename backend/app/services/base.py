# backend/app/services/base.py
"""
Shared service plumbing for the booking engine.

Every service owns its transaction boundaries through ``transaction()``;
repositories only flush. ``measure_operation`` times public operations,
exports them to Prometheus and flags the slow ones in the logs.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 1.0

F = TypeVar("F", bound=Callable[..., Any])


def _record_operation_metric(
    service: str, operation: str, elapsed: float, error_type: Optional[str]
) -> None:
    try:
        prometheus_metrics.record_service_operation(
            service=service,
            operation=operation,
            duration=elapsed,
            status="error" if error_type else "success",
            error_type=error_type,
        )
    except ValueError as exc:
        # Metrics never break the operation they measure
        logger.debug("Failed to record metric for %s: %s", operation, exc)


class BaseService:
    """Base class for services that read and write through a Session."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on clean exit, roll back on any error.

        Database errors surface as ServiceException; domain errors raised
        inside the block propagate unchanged after the rollback.

        Usage:
            with self.transaction():
                booking.booking_status = BookingStatus.ACCEPTED.value
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception as e:
            self.logger.debug(f"Rolling back transaction: {type(e).__name__}: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and warn when it runs longer than SLOW_OPERATION_SECONDS.

        Usage:
            @BaseService.measure_operation("accept_booking")
            def accept(self, principal, booking_id):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.monotonic()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as exc:
                    error_type = type(exc).__name__
                    raise
                finally:
                    elapsed = time.monotonic() - start_time
                    outcome = "error" if error_type else "ok"
                    service_logger = getattr(self, "logger", logger)
                    if elapsed > SLOW_OPERATION_SECONDS:
                        service_logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s",
                            extra={"operation": operation_name, "outcome": outcome},
                        )
                    else:
                        service_logger.debug(
                            f"{operation_name} finished in {elapsed * 1000:.1f}ms",
                            extra={"operation": operation_name, "outcome": outcome},
                        )
                    _record_operation_metric(
                        self.__class__.__name__, operation_name, elapsed, error_type
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a completed state change with its context fields."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
