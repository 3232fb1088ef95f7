"""Repository for in-app notification rows."""

from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> List[Notification]:
        query = self._build_query().filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return self._execute_query(query.order_by(Notification.created_at.desc()))
