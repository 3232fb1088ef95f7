# backend/app/models/user.py
"""
User and companion profile models.

These are owned by the profile side of the platform; the booking engine only
reads them (email for checkout, settlement sub-account for the payment split)
and bumps the companion's running booking counter on accept.

Classes:
    User: Account record for clients, companions and admins
    CompanionProfile: Rate and payout details for a companion
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base


class User(Base):
    """Account for any participant in a booking."""

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.CLIENT.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    companion_profile = relationship(
        "CompanionProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('client', 'companion', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id} role={self.role}>"


class CompanionProfile(Base):
    """Booking-relevant slice of a companion's public profile."""

    __tablename__ = "companion_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    # Pre-verified payee sub-account at the gateway; absent until bank setup is done
    settlement_subaccount_code = Column(String(64), nullable=True)
    total_bookings = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="companion_profile")

    __table_args__ = (
        CheckConstraint("hourly_rate >= 0", name="ck_companion_profiles_rate"),
    )
