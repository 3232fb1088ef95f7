# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for the booking engine.

The expiration sweep is the only periodic job; its cadence comes from
settings so operators can tighten it without a deploy.
"""

from datetime import timedelta
from typing import Any

from app.core.config import settings

EXPIRE_STALE_BOOKINGS_TASK = "app.tasks.booking_tasks.expire_stale_bookings"


def _expiration_entry(interval: timedelta) -> dict[str, Any]:
    return {
        "task": EXPIRE_STALE_BOOKINGS_TASK,
        "schedule": interval,
        "options": {
            "queue": "bookings",
            # Stale runs are pointless; the next tick re-scans anyway
            "expires": int(interval.total_seconds()),
        },
    }


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, staging, development, test)

    Returns:
        Mapping of schedule entry name to Celery beat configuration dict
    """
    interval = timedelta(minutes=settings.expiration_sweep_interval_minutes)
    if environment == "test":
        interval = timedelta(seconds=30)
    return {"expire-stale-bookings": _expiration_entry(interval)}
