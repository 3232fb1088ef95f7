# backend/app/schemas/__init__.py
"""
Pydantic schemas for the booking engine API.
"""

from .booking_state import BookingMoney, BookingStateResponse
from .health import HealthResponse
from .webhooks import WebhookAckResponse

__all__ = [
    "BookingMoney",
    "BookingStateResponse",
    "HealthResponse",
    "WebhookAckResponse",
]
