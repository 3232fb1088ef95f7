"""Database model for platform-wide booking settings."""

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String
from sqlalchemy.sql import func

from ..database import Base

PLATFORM_SETTINGS_ID = "default"


class PlatformSettings(Base):
    """Singleton row holding the current commission percentage.

    Bookings snapshot the value at creation time, so edits here never change
    the fee on an existing booking.
    """

    __tablename__ = "platform_settings"

    id = Column(String(20), primary_key=True, default=PLATFORM_SETTINGS_ID)
    commission_percentage = Column(Numeric(5, 2), nullable=False, default=20)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="ck_platform_settings_commission_range",
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PlatformSettings commission={self.commission_percentage}>"


__all__ = ["PLATFORM_SETTINGS_ID", "PlatformSettings"]
