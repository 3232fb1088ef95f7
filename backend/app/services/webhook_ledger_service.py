"""Service for the webhook dedupe ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.models.webhook_event import WebhookEvent, WebhookEventStatus
from app.repositories.factory import RepositoryFactory
from app.services.base import BaseService

# A "received" row older than this belongs to a worker that died mid-apply.
STALE_CLAIM_AFTER = timedelta(minutes=5)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class LedgerClaim:
    event: WebhookEvent
    claimed: bool

    @property
    def duplicate(self) -> bool:
        return not self.claimed


class WebhookLedgerService(BaseService):
    """Business logic for webhook ledger entries.

    Callers own the transaction: every method here only flushes.
    """

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.repository = RepositoryFactory.create_webhook_event_repository(db)

    @BaseService.measure_operation("webhook_ledger.claim")
    def claim(
        self,
        *,
        source: str,
        event_id: str,
        event_type: str,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> LedgerClaim:
        """
        Claim ``(source, event_id)`` for processing.

        New events are inserted. A ``failed`` entry, or a ``received`` entry
        abandoned for longer than ``STALE_CLAIM_AFTER``, is taken over and its
        ``retry_count`` bumped. Anything else, ``rejected`` included, is a
        duplicate delivery.
        """
        now = now or _now_utc()
        event, created = self.repository.insert_if_absent(
            source=source,
            event_id=event_id,
            event_type=event_type,
            payload=payload,
        )
        if created:
            return LedgerClaim(event=event, claimed=True)

        if self._is_reclaimable(event, now):
            event.status = WebhookEventStatus.RECEIVED
            event.retry_count = (event.retry_count or 0) + 1
            event.received_at = now
            event.processing_error = None
            event.processed_at = None
            self.repository.flush()
            self.logger.info(
                "Re-claiming webhook event",
                extra={"source": source, "event_id": event_id, "retry_count": event.retry_count},
            )
            return LedgerClaim(event=event, claimed=True)

        self.logger.info(
            "Duplicate webhook delivery",
            extra={"source": source, "event_id": event_id, "status": event.status},
        )
        return LedgerClaim(event=event, claimed=False)

    @staticmethod
    def _is_reclaimable(event: WebhookEvent, now: datetime) -> bool:
        if event.status == WebhookEventStatus.FAILED:
            return True
        if event.status == WebhookEventStatus.RECEIVED and event.received_at is not None:
            return _ensure_utc(now) - _ensure_utc(event.received_at) > STALE_CLAIM_AFTER
        return False

    @BaseService.measure_operation("webhook_ledger.mark_processed")
    def mark_processed(
        self,
        event: WebhookEvent,
        *,
        related_booking_id: str | None = None,
        duration_ms: int | None = None,
        status: str = WebhookEventStatus.PROCESSED,
    ) -> WebhookEvent:
        """Mark webhook as successfully processed."""
        event.status = status
        event.processed_at = _now_utc()
        event.related_booking_id = related_booking_id
        event.processing_duration_ms = duration_ms
        self.repository.flush()
        return event

    def mark_ignored(
        self,
        event: WebhookEvent,
        *,
        reason: str,
        related_booking_id: str | None = None,
        duration_ms: int | None = None,
    ) -> WebhookEvent:
        event.processing_error = reason
        return self.mark_processed(
            event,
            related_booking_id=related_booking_id,
            duration_ms=duration_ms,
            status=WebhookEventStatus.IGNORED,
        )

    @BaseService.measure_operation("webhook_ledger.mark_failed")
    def mark_failed(
        self,
        event: WebhookEvent,
        *,
        error: str,
        related_booking_id: str | None = None,
        duration_ms: int | None = None,
    ) -> WebhookEvent:
        """Mark webhook as failed; the next delivery of the same event will retry it."""
        event.status = WebhookEventStatus.FAILED
        event.processing_error = error
        event.processed_at = _now_utc()
        event.related_booking_id = related_booking_id
        event.processing_duration_ms = duration_ms
        self.repository.flush()
        return event

    @BaseService.measure_operation("webhook_ledger.mark_rejected")
    def mark_rejected(
        self,
        event: WebhookEvent,
        *,
        reason: str,
        related_booking_id: str | None = None,
        duration_ms: int | None = None,
    ) -> WebhookEvent:
        """Close the entry for good; later deliveries are acknowledged as duplicates."""
        event.processing_error = reason
        return self.mark_processed(
            event,
            related_booking_id=related_booking_id,
            duration_ms=duration_ms,
            status=WebhookEventStatus.REJECTED,
        )

    def events_for_booking(self, booking_id: str) -> list[WebhookEvent]:
        return self.repository.list_events_for_booking(booking_id)
