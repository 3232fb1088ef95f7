# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import (
    admin_bookings as admin_bookings_v1,
    health as health_v1,
    webhooks_paystack as webhooks_paystack_v1,
)

API_TITLE = "Booking Engine API"
API_DESCRIPTION = "Booking and payment orchestration for the companion marketplace"
API_VERSION = health_v1.API_VERSION

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _validate_startup_config() -> None:
    if settings.environment == "production":
        if settings.paystack_fake:
            raise RuntimeError("PAYSTACK_FAKE cannot be enabled in production")
        if not settings.webhook_signing_secret:
            raise RuntimeError("A Paystack webhook signing secret is required in production")
    elif not settings.webhook_signing_secret:
        logger.warning("No Paystack webhook secret configured; every webhook will be rejected")


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    _validate_startup_config()
    yield
    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(webhooks_paystack_v1.router, prefix="/webhooks/paystack")
api_v1.include_router(admin_bookings_v1.router, prefix="/admin/bookings")

app.include_router(api_v1)

# Standard /metrics/prometheus path for Prometheus scraping
app.include_router(prometheus.router, prefix="/metrics")
