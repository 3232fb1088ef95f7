"""
Celery tasks for the booking lifecycle.

Runs the expiration sweep that expires and refunds paid bookings the
companion never answered.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, Optional, ParamSpec, Protocol, TypeVar, cast

from celery.result import AsyncResult
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationException
from app.services.expiration_sweeper import ExpirationSweeper
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R", covariant=True)


class TaskWrapper(Protocol[P, R]):
    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        ...

    delay: Callable[..., AsyncResult]
    apply_async: Callable[..., AsyncResult]


def typed_task(
    *task_args: Any, **task_kwargs: Any
) -> Callable[[Callable[P, R]], TaskWrapper[P, R]]:
    """Return a typed Celery task decorator for mypy."""

    return cast(
        Callable[[Callable[P, R]], TaskWrapper[P, R]],
        celery_app.task(*task_args, **task_kwargs),
    )


def parse_run_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an operator-supplied ISO-8601 instant; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationException(
            f"now must be an ISO-8601 timestamp, got {value!r}", code="INVALID_NOW"
        ) from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@typed_task(bind=True, max_retries=3, name="app.tasks.booking_tasks.expire_stale_bookings")
def expire_stale_bookings(self: Any, now: Optional[str] = None) -> Dict[str, int]:
    """
    Expire paid bookings whose companion never answered, refund them and
    retry refunds that failed on an earlier run.

    Scheduled by Celery beat. ``now`` lets an operator re-run the sweep as of
    a specific instant.

    Returns:
        Dict with the sweep's per-outcome counts
    """
    run_at = parse_run_time(now)

    from app.database import SessionLocal

    db: Session = SessionLocal()
    try:
        result = ExpirationSweeper(db).sweep(now=run_at)
        if result.refund_failures or result.errors:
            logger.warning(
                f"Expiration sweep finished with {result.refund_failures} refund failures "
                f"and {result.errors} errors",
                extra=result.to_dict(),
            )
        logger.info(
            f"Expiration sweep completed: {result.expired} expired, {result.skipped} skipped, "
            f"{result.refunds_recovered}/{result.refunds_retried} refund retries recovered",
            extra=result.to_dict(),
        )
        return result.to_dict()
    except Exception as exc:
        logger.error(f"Expiration sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=300)
    finally:
        db.close()
