"""Schemas for inbound payment webhook responses."""

from __future__ import annotations

from ._strict_base import StrictModel


class WebhookAckResponse(StrictModel):
    ok: bool = True
    duplicate: bool = False
