"""Schemas for the booking compound-state read endpoint."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ._strict_base import StrictModel


class BookingMoney(StrictModel):
    hourly_rate: Decimal
    commission_percentage: Decimal
    total_amount: Decimal
    platform_fee: Decimal
    companion_earnings: Decimal


class BookingStateResponse(StrictModel):
    """Compound state of one booking plus the operator reconciliation marker."""

    booking_id: str
    client_id: str
    companion_id: str
    booking_status: str
    payment_status: str
    payment_reference: Optional[str] = None
    refund_id: Optional[str] = None
    needs_reconciliation: bool = False
    reconciliation_reason: Optional[str] = None
    money: BookingMoney
    created_at: datetime
    expires_at: datetime
    paid_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    webhook_event_ids: list[str] = Field(default_factory=list)
