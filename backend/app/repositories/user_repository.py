"""Read access to user accounts and companion profiles."""

from __future__ import annotations

import logging
from typing import Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.user import CompanionProfile, User
from app.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Profiles are owned elsewhere; the booking engine reads them and bumps one counter."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, User)

    def get_profile(self, user_id: str) -> Optional[User]:
        return self.get_by_id(user_id)

    def get_companion_profile(self, user_id: str) -> Optional[CompanionProfile]:
        result = (
            self.db.query(CompanionProfile).filter(CompanionProfile.user_id == user_id).first()
        )
        return cast(Optional[CompanionProfile], result)

    def increment_companion_bookings(self, user_id: str) -> int:
        """Atomically bump the companion's running booking counter; returns rows touched."""
        try:
            updated = (
                self.db.query(CompanionProfile)
                .filter(CompanionProfile.user_id == user_id)
                .update(
                    {CompanionProfile.total_bookings: CompanionProfile.total_bookings + 1},
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
            return int(updated)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to increment bookings for %s: %s", user_id, str(exc))
            raise RepositoryException("Failed to update companion booking counter") from exc
