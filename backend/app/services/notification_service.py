# backend/app/services/notification_service.py
"""
Notification Service for the booking engine

Writes in-app notification rows for booking events. Delivery is best
effort: callers dispatch only after their own transaction has committed,
and a failure here is logged and dropped so it can never undo a booking
transition.
"""

from dataclasses import dataclass
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.notification import Notification
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingNotification:
    """A notification decided during a transition, sent after commit."""

    user_id: str
    event_type: str
    title: str
    body: str
    related_booking_id: Optional[str] = None


class NotificationService(BaseService):
    """Fire-and-forget in-app notifications."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_notification_repository(db)

    @BaseService.measure_operation("notify")
    def notify(
        self,
        user_id: str,
        event_type: str,
        title: str,
        body: str,
        related_booking_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Record a notification for ``user_id``.

        Returns the stored row, or None when it could not be written.
        """
        try:
            notification = self.repository.create(
                user_id=user_id,
                event_type=event_type,
                title=title,
                body=body,
                related_booking_id=related_booking_id,
                is_read=False,
            )
            self.db.commit()
        except Exception as exc:  # Best effort: the booking change is already committed
            self.db.rollback()
            self.logger.warning(
                "Notification dispatch failed",
                extra={
                    "user_id": user_id,
                    "event_type": event_type,
                    "booking_id": related_booking_id,
                    "error": str(exc),
                },
            )
            return None
        return notification

    def dispatch(self, pending: Iterable[PendingNotification]) -> List[Notification]:
        """Send each pending notification independently; failures never stop the rest."""
        sent: List[Notification] = []
        for item in pending:
            notification = self.notify(
                item.user_id,
                item.event_type,
                item.title,
                item.body,
                related_booking_id=item.related_booking_id,
            )
            if notification is not None:
                sent.append(notification)
        return sent

    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> List[Notification]:
        return self.repository.list_for_user(user_id, unread_only=unread_only)
