# backend/app/models/booking.py
"""
Booking model for the companion marketplace.

A booking is a reservation of a companion's time by a client, paid up front
through the payment gateway and held until the companion accepts, rejects or
lets it expire. The record carries two independent status columns:

- ``booking_status``: the user-visible lifecycle
- ``payment_status``: the financial ledger for the captured funds

Their coupling is enforced by the booking state machine, never by the model.
Money is snapshotted at creation time so later commission or rate changes do
not touch existing bookings.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting payment and/or the companion's answer
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"  # Companion never answered within the window


class PaymentStatus(str, Enum):
    """Payment leg statuses."""

    PENDING = "pending"  # Nothing captured yet
    PAID = "paid"
    REFUND_PENDING = "refund_pending"
    REFUNDED = "refunded"
    FAILED = "failed"


class Booking(Base):
    """
    Reservation between a client and a companion.

    Never deleted: terminal bookings are kept for audit and reconciliation.
    """

    __tablename__ = "bookings"

    # Primary key
    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Parties (immutable after creation)
    client_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    companion_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    # Scheduling
    start_time = Column(DateTime(timezone=True), nullable=False)
    duration_hours = Column(Integer, nullable=False)
    location = Column(Text, nullable=True)
    special_requests = Column(Text, nullable=True)

    # Money snapshot
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    commission_percentage = Column(Numeric(5, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    companion_earnings = Column(Numeric(10, 2), nullable=False)

    # Compound state
    booking_status = Column(
        String(20), nullable=False, default=BookingStatus.PENDING.value, index=True
    )
    payment_status = Column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True
    )

    # Gateway linkage (reference is set once and never changes)
    payment_reference = Column(String(100), nullable=True, unique=True)
    refund_id = Column(String(100), nullable=True)

    # Manual follow-up marker for payment legs the engine could not finish
    needs_reconciliation = Column(Boolean, nullable=False, default=False)
    reconciliation_reason = Column(Text, nullable=True)
    refund_attempts = Column(Integer, nullable=False, default=0, server_default="0")

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    paid_at = Column(DateTime(timezone=True), nullable=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    # Relationships
    client = relationship("User", foreign_keys=[client_id])
    companion = relationship("User", foreign_keys=[companion_id])

    __table_args__ = (
        CheckConstraint(
            "booking_status IN ('pending', 'accepted', 'rejected', 'completed', 'cancelled', 'expired')",
            name="ck_bookings_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refund_pending', 'refunded', 'failed')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("duration_hours >= 1", name="ck_bookings_duration_positive"),
        CheckConstraint(
            "booking_status != 'accepted' OR payment_status = 'paid'",
            name="ck_bookings_accepted_requires_paid",
        ),
        Index("ix_bookings_status_pair_created", "booking_status", "payment_status", "created_at"),
    )

    @property
    def end_time(self) -> Optional[datetime]:
        if self.start_time is None or self.duration_hours is None:
            return None
        return self.start_time + timedelta(hours=self.duration_hours)

    @property
    def status_pair(self) -> tuple[BookingStatus, PaymentStatus]:
        return BookingStatus(self.booking_status), PaymentStatus(self.payment_status)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.companion_id)

    def counterparty_of(self, user_id: str) -> str:
        return self.companion_id if user_id == self.client_id else self.client_id

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id} ({self.booking_status}, {self.payment_status}) "
            f"client={self.client_id} companion={self.companion_id}>"
        )
