# backend/app/routes/v1/health.py
"""
Health check endpoint for load balancers and uptime checks.
"""

from __future__ import annotations

from datetime import datetime, timezone
import os

from fastapi import APIRouter

from app.core.config import settings
from app.schemas.health import HealthResponse

router = APIRouter(tags=["health"])

SERVICE_NAME = "booking-engine"
API_VERSION = "1.0.0"


def _resolve_git_sha() -> str:
    for candidate in (os.getenv("GIT_SHA"), os.getenv("COMMIT_SHA")):
        if candidate and candidate.strip():
            return candidate.strip()
    return "unknown"


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Basic service info; does not touch the database or the gateway."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        git_sha=_resolve_git_sha(),
    )
