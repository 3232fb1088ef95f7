# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_credential_verifier, get_current_principal, require_admin
from .database import get_db
from .services import (
    get_booking_service,
    get_notification_service,
    get_payment_gateway,
    get_webhook_verifier,
)

__all__ = [
    # Auth
    "get_credential_verifier",
    "get_current_principal",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_notification_service",
    "get_payment_gateway",
    "get_webhook_verifier",
]
