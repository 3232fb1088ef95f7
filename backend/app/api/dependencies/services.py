# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.payment_gateway import PaymentGatewayAdapter, build_payment_gateway
from ...services.webhook_verifier import WebhookVerifier
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_payment_gateway_singleton() -> PaymentGatewayAdapter:
    """Get the process-wide gateway adapter; the fake client keeps state across requests."""
    gateway = build_payment_gateway()
    if gateway.is_fake:
        logger.info("Payment gateway running against the in-memory Paystack client")
    return gateway


def get_payment_gateway() -> PaymentGatewayAdapter:
    """Get payment gateway adapter for dependency injection."""
    return get_payment_gateway_singleton()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """
    Get notification service instance.

    Args:
        db: Database session

    Returns:
        NotificationService instance
    """
    return NotificationService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    gateway: PaymentGatewayAdapter = Depends(get_payment_gateway),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        gateway: Payment gateway adapter for checkouts and refunds
        notification_service: Notification service for post-commit notices

    Returns:
        BookingService instance
    """
    return BookingService(db, gateway=gateway, notification_service=notification_service)


def get_webhook_verifier(
    db: Session = Depends(get_db),
    booking_service: BookingService = Depends(get_booking_service),
) -> WebhookVerifier:
    """Get the Paystack webhook verifier sharing the request's booking service."""
    return WebhookVerifier(db, booking_service=booking_service)
