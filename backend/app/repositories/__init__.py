"""Data access layer for the booking engine."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .platform_config_repository import PlatformSettingsRepository
from .user_repository import UserRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "NotificationRepository",
    "PlatformSettingsRepository",
    "RepositoryFactory",
    "UserRepository",
    "WebhookEventRepository",
]
