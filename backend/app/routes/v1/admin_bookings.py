# backend/app/routes/v1/admin_bookings.py
"""
Operator view of booking state (v1).

Mounted under /api/v1/admin/bookings
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import require_admin
from ...api.dependencies.services import get_booking_service
from ...principal import Principal
from ...schemas.booking_state import BookingStateResponse
from ...services.booking_service import BookingService

router = APIRouter(tags=["admin-bookings"])


@router.get("/{booking_id}/state", response_model=BookingStateResponse)
async def get_booking_state(
    booking_id: str,
    principal: Principal = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStateResponse:
    """Compound state, reconciliation marker and webhook history for one booking."""
    return await asyncio.to_thread(booking_service.get_booking_state, principal, booking_id)
