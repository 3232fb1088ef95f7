"""
Inbound Paystack webhook handling.

Authenticates the raw body, records the delivery in the dedupe ledger and
applies it to the booking it belongs to, at most once per event id.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    InvalidTransition,
    PaymentAmountMismatch,
    SignatureVerificationError,
    ValidationException,
)
from app.models.webhook_event import WebhookEvent, WebhookEventStatus
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.base import BaseService
from app.services.booking_service import BookingService
from app.services.commission_calculator import from_minor_units
from app.services.webhook_ledger_service import WebhookLedgerService

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "paystack"

CHARGE_SUCCESS = "charge.success"
CHARGE_FAILED = "charge.failed"
REFUND_PROCESSED = "refund.processed"
REFUND_FAILED = "refund.failed"

HANDLED_EVENTS = frozenset({CHARGE_SUCCESS, CHARGE_FAILED, REFUND_PROCESSED, REFUND_FAILED})


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    event_id: str
    duplicate: bool = False
    status: str = WebhookEventStatus.PROCESSED
    booking_id: Optional[str] = None
    note: Optional[str] = None


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Paystack's signature: hex HMAC-SHA512 of the raw body keyed by the secret."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def _extract_reference(data: Dict[str, Any]) -> Optional[str]:
    # Charge events carry ``reference``; refund events name the original transaction.
    reference = data.get("reference") or data.get("transaction_reference")
    if not reference and isinstance(data.get("transaction"), dict):
        reference = data["transaction"].get("reference")
    return str(reference) if reference else None


def _record_webhook_metric(event_type: str, outcome: str) -> None:
    try:
        prometheus_metrics.record_webhook_outcome(event_type, outcome)
    except ValueError as exc:
        logger.debug("Failed to record webhook metric for %s: %s", event_type, exc)


def _extract_metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    metadata = data.get("metadata")
    if isinstance(metadata, dict):
        return metadata
    if isinstance(metadata, str) and metadata.strip():
        try:
            parsed = json.loads(metadata)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


class WebhookVerifier(BaseService):
    """Authenticate and apply Paystack webhook deliveries."""

    def __init__(
        self,
        db: Session,
        booking_service: Optional[BookingService] = None,
        *,
        secret: Optional[str] = None,
    ) -> None:
        super().__init__(db)
        self.booking_service = booking_service or BookingService(db)
        self.ledger = WebhookLedgerService(db)
        self._secret = secret if secret is not None else settings.webhook_signing_secret

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> None:
        if not self._secret:
            self.logger.error("Webhook signing secret is not configured")
            raise SignatureVerificationError("Webhook signing secret is not configured")
        if not signature:
            raise SignatureVerificationError("Missing webhook signature")
        expected = compute_signature(raw_body, self._secret)
        # Compared byte for byte as received; Paystack sends lowercase hex.
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            self.logger.warning("Rejected webhook with invalid signature")
            raise SignatureVerificationError()

    @staticmethod
    def parse(raw_body: bytes) -> Dict[str, Any]:
        try:
            payload = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationException(
                "Webhook body is not valid JSON", code="INVALID_PAYLOAD"
            ) from exc
        if not isinstance(payload, dict):
            raise ValidationException("Webhook body must be a JSON object", code="INVALID_PAYLOAD")
        event_type = payload.get("event")
        data = payload.get("data")
        if not isinstance(event_type, str) or not event_type:
            raise ValidationException("Webhook body has no event type", code="INVALID_PAYLOAD")
        if not isinstance(data, dict):
            raise ValidationException("Webhook body has no data object", code="INVALID_PAYLOAD")
        return payload

    @staticmethod
    def event_id_for(event_type: str, data: Dict[str, Any]) -> str:
        """Gateway id when present, else ``<event>:<reference>``; namespaced by event type."""
        gateway_id = data.get("id")
        if gateway_id is not None and str(gateway_id):
            return f"{event_type}:{gateway_id}"
        reference = _extract_reference(data)
        if not reference:
            raise ValidationException(
                "Webhook data carries neither an id nor a reference",
                code="INVALID_PAYLOAD",
                details={"event": event_type},
            )
        return f"{event_type}:{reference}"

    @BaseService.measure_operation("webhook.handle")
    def handle(self, raw_body: bytes, signature: Optional[str]) -> WebhookOutcome:
        """
        Verify, dedupe and apply one webhook delivery.

        Raises:
            SignatureVerificationError: the body is not signed with our secret
            ValidationException: the body is not a Paystack event
            PaymentAmountMismatch: the charge does not match the booking total;
                the entry is closed as ``rejected`` and the booking flagged
        """
        self.verify_signature(raw_body, signature)
        payload = self.parse(raw_body)
        event_type: str = payload["event"]
        data: Dict[str, Any] = payload["data"]
        event_id = self.event_id_for(event_type, data)

        with self.transaction():
            claim = self.ledger.claim(
                source=WEBHOOK_SOURCE,
                event_id=event_id,
                event_type=event_type,
                payload=payload,
            )
        if claim.duplicate:
            _record_webhook_metric(event_type, "duplicate")
            return WebhookOutcome(
                event_type=event_type,
                event_id=event_id,
                duplicate=True,
                status=claim.event.status,
                booking_id=claim.event.related_booking_id,
            )

        event = claim.event
        started = time.monotonic()
        try:
            outcome = self._apply(event_type, event_id, data)
        except PaymentAmountMismatch as exc:
            self.db.rollback()
            self._record_rejection(event, exc, started)
            _record_webhook_metric(event_type, WebhookEventStatus.REJECTED)
            raise
        except Exception as exc:
            self.db.rollback()
            self._record_failure(event, exc, started, data)
            _record_webhook_metric(event_type, WebhookEventStatus.FAILED)
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        with self.transaction():
            if outcome.status == WebhookEventStatus.IGNORED:
                self.ledger.mark_ignored(
                    event,
                    reason=outcome.note or f"unhandled {event_type}",
                    related_booking_id=outcome.booking_id,
                    duration_ms=duration_ms,
                )
            else:
                self.ledger.mark_processed(
                    event, related_booking_id=outcome.booking_id, duration_ms=duration_ms
                )
        _record_webhook_metric(event_type, outcome.status)
        self.logger.info(
            "Webhook applied",
            extra={
                "event_type": event_type,
                "event_id": event_id,
                "status": outcome.status,
                "booking_id": outcome.booking_id,
            },
        )
        return outcome

    def _apply(self, event_type: str, event_id: str, data: Dict[str, Any]) -> WebhookOutcome:
        if event_type not in HANDLED_EVENTS:
            return WebhookOutcome(event_type, event_id, status=WebhookEventStatus.IGNORED)

        reference = _extract_reference(data)
        if not reference:
            raise ValidationException(
                f"{event_type} has no transaction reference", code="MISSING_REFERENCE"
            )

        if event_type == CHARGE_SUCCESS:
            try:
                amount = from_minor_units(int(data["amount"]))
            except (KeyError, TypeError, ValueError) as exc:
                raise ValidationException(
                    "charge.success has no usable amount",
                    code="INVALID_AMOUNT",
                    details={"reference": reference},
                ) from exc
            metadata = _extract_metadata(data)
            booking = self.booking_service.apply_gateway_charge(
                reference, amount, booking_id=metadata.get("booking_id")
            )
        elif event_type == CHARGE_FAILED:
            try:
                booking = self.booking_service.apply_gateway_failure(reference)
            except InvalidTransition as exc:
                # The payment already settled some other way; a late failure changes nothing.
                self.logger.info(
                    "Ignoring late charge failure",
                    extra={"reference": reference, "booking_status": exc.booking_status},
                )
                return WebhookOutcome(
                    event_type,
                    event_id,
                    status=WebhookEventStatus.IGNORED,
                    booking_id=exc.details.get("booking_id"),
                    note="charge failed after the payment had already settled",
                )
        elif event_type == REFUND_PROCESSED:
            refund_id = data.get("id")
            booking = self.booking_service.apply_refund_processed(
                reference, refund_id=str(refund_id) if refund_id is not None else None
            )
        else:
            booking = self.booking_service.apply_refund_failed(
                reference, reason=data.get("gateway_response") or data.get("status")
            )
        return WebhookOutcome(event_type, event_id, booking_id=booking.id)

    def _record_failure(
        self, event: WebhookEvent, exc: Exception, started: float, data: Dict[str, Any]
    ) -> None:
        duration_ms = int((time.monotonic() - started) * 1000)
        booking_id = _extract_metadata(data).get("booking_id")
        self.logger.error(
            "Webhook application failed",
            extra={
                "event_id": event.event_id,
                "event_type": event.event_type,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        with self.transaction():
            self.ledger.mark_failed(
                event,
                error=f"{type(exc).__name__}: {exc}",
                related_booking_id=str(booking_id) if booking_id else None,
                duration_ms=duration_ms,
            )

    def _record_rejection(
        self, event: WebhookEvent, exc: PaymentAmountMismatch, started: float
    ) -> None:
        reason = f"{exc.code}: {exc.message}"
        booking = self.booking_service.flag_payment_mismatch(exc.reference or "", reason=reason)
        duration_ms = int((time.monotonic() - started) * 1000)
        with self.transaction():
            self.ledger.mark_rejected(
                event, reason=reason, related_booking_id=booking.id, duration_ms=duration_ms
            )
