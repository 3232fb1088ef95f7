# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )

    # Storage
    database_url: str = Field(
        default="sqlite+pysqlite:///./bookings.db",
        description="SQLAlchemy URL for the primary database",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL used as the Celery broker",
    )

    # Paystack configuration
    paystack_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Paystack secret key for backend API calls",
    )
    paystack_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Secret used to sign webhook bodies (defaults to the secret key)",
    )
    paystack_base_url: str = Field(
        default="https://api.paystack.co", description="Paystack REST base URL"
    )
    payment_currency: str = Field(default="NGN", description="Currency for booking payments")
    payment_callback_url: Optional[str] = Field(
        default=None,
        description="Where the gateway redirects the client after checkout",
    )
    gateway_timeout_seconds: float = Field(
        default=15.0,
        description="Upper bound for any single payment gateway call",
    )
    paystack_fake: bool = Field(
        default=False,
        description="Use the in-memory Paystack stand-in instead of the real API",
    )

    # Booking lifecycle
    booking_expiration_hours: int = Field(
        default=24,
        description="How long a paid booking may wait for the companion before it expires",
    )
    default_commission_percentage: float = Field(
        default=20,
        description="Commission used when no platform settings row exists (20 = 20%)",
    )
    expiration_sweep_interval_minutes: int = Field(
        default=15, description="Celery beat cadence for the expiration sweep"
    )
    refund_retry_max_attempts: int = Field(
        default=5,
        description="Sweeper refund retries per flagged booking before it is left to an operator",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_commission_percentage")
    @classmethod
    def validate_commission(cls, value: float) -> float:
        if value < 0 or value > 100:
            raise ValueError("DEFAULT_COMMISSION_PERCENTAGE must be within 0-100")
        return value

    @field_validator("booking_expiration_hours")
    @classmethod
    def validate_expiration(cls, value: int) -> int:
        if value < 1:
            raise ValueError("BOOKING_EXPIRATION_HOURS must be at least 1")
        return value

    @field_validator("paystack_secret_key")
    @classmethod
    def require_secret_in_prod(cls, value: SecretStr, info: ValidationInfo) -> SecretStr:
        """Ensure the gateway secret is configured when running in production."""

        environment = info.data.get("environment", "development")
        if environment == "production" and not value.get_secret_value():
            raise ValueError("PAYSTACK_SECRET_KEY must be set in production environments.")
        return value

    @property
    def webhook_signing_secret(self) -> str:
        """Paystack signs webhook bodies with the account secret unless overridden."""
        explicit = self.paystack_webhook_secret.get_secret_value()
        if explicit:
            return explicit
        return self.paystack_secret_key.get_secret_value()


settings = Settings()
