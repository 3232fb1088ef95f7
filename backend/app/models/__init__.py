"""
Database models for the booking engine.

- Users and companion profiles (read-mostly, owned by the profile side)
- Bookings with their compound booking/payment state
- Platform settings (commission snapshot source)
- Webhook ledger and in-app notifications
"""

from .booking import Booking, BookingStatus, PaymentStatus
from .notification import Notification, NotificationType
from .platform_config import PLATFORM_SETTINGS_ID, PlatformSettings
from .user import CompanionProfile, User
from .webhook_event import WebhookEvent, WebhookEventStatus

__all__ = [
    "Booking",
    "BookingStatus",
    "CompanionProfile",
    "Notification",
    "NotificationType",
    "PLATFORM_SETTINGS_ID",
    "PaymentStatus",
    "PlatformSettings",
    "User",
    "WebhookEvent",
    "WebhookEventStatus",
]
