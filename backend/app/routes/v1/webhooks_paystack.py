# backend/app/routes/v1/webhooks_paystack.py
"""
Paystack webhook endpoint for booking payments and refunds (v1).

Mounted under /api/v1/webhooks/paystack
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...api.dependencies.services import get_webhook_verifier
from ...schemas.webhooks import WebhookAckResponse
from ...services.webhook_verifier import WebhookVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADERS = ("X-Signature", "X-Paystack-Signature")


def _signature_from(request: Request) -> Optional[str]:
    for name in SIGNATURE_HEADERS:
        value = request.headers.get(name)
        if value:
            return value
    return None


@router.post("", response_model=WebhookAckResponse)
async def handle_paystack_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
) -> WebhookAckResponse:
    """
    Apply a Paystack event to its booking.

    Signature failures answer 401 and amount mismatches 422; both are raised
    as domain errors and rendered by the app's error handlers.
    A mismatched charge is closed in the ledger, so Paystack redeliveries of
    it are acknowledged as duplicates.
    """
    raw_body = await request.body()
    outcome = await asyncio.to_thread(verifier.handle, raw_body, _signature_from(request))
    if outcome.duplicate:
        logger.info(
            "Acknowledged duplicate Paystack delivery",
            extra={"event_id": outcome.event_id, "event_type": outcome.event_type},
        )
    return WebhookAckResponse(ok=True, duplicate=outcome.duplicate)
