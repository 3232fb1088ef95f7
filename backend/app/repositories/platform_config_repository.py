"""Repository for the platform settings singleton."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, cast

from sqlalchemy.orm import Session

from app.models.platform_config import PLATFORM_SETTINGS_ID, PlatformSettings


class PlatformSettingsRepository:
    """Data access helper for the single platform settings row."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_platform_settings(self) -> Optional[PlatformSettings]:
        result = (
            self.db.query(PlatformSettings)
            .filter(PlatformSettings.id == PLATFORM_SETTINGS_ID)
            .first()
        )
        return cast(Optional[PlatformSettings], result)

    def upsert(self, *, commission_percentage: Decimal) -> PlatformSettings:
        record = self.get_platform_settings()
        if record is None:
            record = PlatformSettings(
                id=PLATFORM_SETTINGS_ID, commission_percentage=commission_percentage
            )
            self.db.add(record)
        else:
            record.commission_percentage = commission_percentage
        self.db.flush()
        return record


__all__ = ["PlatformSettingsRepository"]
