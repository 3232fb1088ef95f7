"""Repository helpers for webhook event ledger."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.webhook_event import WebhookEvent, WebhookEventStatus
from app.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    """Repository for webhook ledger queries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, WebhookEvent)

    def find_by_source_and_event_id(self, source: str, event_id: str) -> WebhookEvent | None:
        """Find webhook event by source and external event ID."""
        result = (
            self.db.query(WebhookEvent)
            .filter(WebhookEvent.source == source, WebhookEvent.event_id == event_id)
            .first()
        )
        return cast(WebhookEvent | None, result)

    def insert_if_absent(
        self,
        *,
        source: str,
        event_id: str,
        event_type: str,
        payload: dict[str, Any],
    ) -> tuple[WebhookEvent, bool]:
        """
        Claim ``(source, event_id)`` in the ledger.

        Returns the ledger row and whether this call created it. The insert runs
        inside a SAVEPOINT so losing the race to a concurrent delivery only rolls
        back the claim, not the caller's transaction.
        """
        existing = self.find_by_source_and_event_id(source, event_id)
        if existing is not None:
            return existing, False

        event = WebhookEvent(
            source=source,
            event_id=event_id,
            event_type=event_type or "unknown",
            payload=payload,
            status=WebhookEventStatus.RECEIVED,
            received_at=_now_utc(),
            retry_count=0,
        )
        try:
            with self.db.begin_nested():
                self.db.add(event)
                self.db.flush()
        except IntegrityError:
            # Race-safe fallback: DB uniqueness won in another worker.
            winner = self.find_by_source_and_event_id(source, event_id)
            if winner is None:
                raise RepositoryException(
                    f"Ledger claim for {source}:{event_id} lost without a winning row"
                )
            return winner, False
        except SQLAlchemyError as exc:
            self.logger.error("Failed to record webhook %s:%s: %s", source, event_id, str(exc))
            raise RepositoryException("Failed to record webhook event") from exc
        return event, True

    def list_events_for_booking(self, booking_id: str) -> list[WebhookEvent]:
        """Return ledger rows correlated to a booking, oldest first."""
        query = (
            self._build_query()
            .filter(WebhookEvent.related_booking_id == booking_id)
            .order_by(WebhookEvent.received_at.asc())
        )
        return self._execute_query(query)
