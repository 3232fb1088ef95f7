"""Paystack webhook verification, dedupe and application."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from unittest.mock import patch

import pytest

from app.core.exceptions import (
    NotFoundException,
    PaymentAmountMismatch,
    SignatureVerificationError,
    ValidationException,
)
from app.models.booking import BookingStatus, PaymentStatus
from app.models.notification import NotificationType
from app.models.webhook_event import WebhookEvent, WebhookEventStatus
from app.services.webhook_ledger_service import WebhookLedgerService
from app.services.webhook_verifier import WEBHOOK_SOURCE, WebhookVerifier, compute_signature
from tests.factories.booking_builders import create_booking

SECRET = "whsec_test"
REFERENCE = "bk_ref_webhook"


@pytest.fixture
def verifier(unit_db, booking_service):
    return WebhookVerifier(unit_db, booking_service=booking_service, secret=SECRET)


@pytest.fixture
def unpaid_booking(unit_db, client_user, companion_user):
    return create_booking(
        unit_db, client=client_user, companion=companion_user, payment_reference=REFERENCE
    )


def _body(event: str, **data) -> bytes:
    return json.dumps({"event": event, "data": data}).encode("utf-8")


def _charge(booking, *, amount=10000, gateway_id=4001) -> bytes:
    return _body(
        "charge.success",
        id=gateway_id,
        reference=REFERENCE,
        amount=amount,
        status="success",
        metadata={"booking_id": booking.id},
    )


def _ledger(unit_db) -> list[WebhookEvent]:
    return unit_db.query(WebhookEvent).filter(WebhookEvent.source == WEBHOOK_SOURCE).all()


class TestSignature:
    def test_invalid_signature_records_nothing(self, unit_db, verifier, unpaid_booking):
        body = _charge(unpaid_booking)

        with pytest.raises(SignatureVerificationError):
            verifier.handle(body, compute_signature(body, "some-other-secret"))

        unit_db.refresh(unpaid_booking)
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.PENDING)
        assert _ledger(unit_db) == []

    def test_missing_signature(self, verifier, unpaid_booking):
        with pytest.raises(SignatureVerificationError):
            verifier.handle(_charge(unpaid_booking), None)

    def test_tampered_body_fails(self, verifier, unpaid_booking):
        signature = compute_signature(_charge(unpaid_booking), SECRET)

        with pytest.raises(SignatureVerificationError):
            verifier.handle(_charge(unpaid_booking, amount=1), signature)

    def test_unconfigured_secret_rejects_everything(self, unit_db, booking_service, unpaid_booking):
        verifier = WebhookVerifier(unit_db, booking_service=booking_service, secret="")
        body = _charge(unpaid_booking)

        with pytest.raises(SignatureVerificationError):
            verifier.handle(body, compute_signature(body, ""))

    def test_signature_is_compared_exactly_as_received(self, unit_db, verifier, unpaid_booking):
        body = _charge(unpaid_booking)

        with pytest.raises(SignatureVerificationError):
            verifier.handle(body, compute_signature(body, SECRET).upper())

        unit_db.refresh(unpaid_booking)
        assert unpaid_booking.payment_status == PaymentStatus.PENDING.value
        assert _ledger(unit_db) == []

    def test_padded_signature_is_rejected(self, verifier, unpaid_booking):
        body = _charge(unpaid_booking)

        with pytest.raises(SignatureVerificationError):
            verifier.handle(body, f" {compute_signature(body, SECRET)} ")


class TestChargeEvents:
    def test_charge_success_marks_booking_paid(self, unit_db, verifier, unpaid_booking):
        body = _charge(unpaid_booking)

        outcome = verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(unpaid_booking)
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.PAID)
        assert outcome.event_id == "charge.success:4001"
        assert outcome.booking_id == unpaid_booking.id
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.PROCESSED
        assert entry.related_booking_id == unpaid_booking.id
        assert entry.processed_at is not None

    def test_duplicate_delivery_is_acknowledged_without_reapplying(
        self, unit_db, verifier, notification_service, unpaid_booking, companion_user
    ):
        body = _charge(unpaid_booking)
        signature = compute_signature(body, SECRET)

        first = verifier.handle(body, signature)
        second = verifier.handle(body, signature)

        assert first.duplicate is False
        assert second.duplicate is True
        assert second.status == WebhookEventStatus.PROCESSED
        assert len(_ledger(unit_db)) == 1
        assert [n.event_type for n in notification_service.list_for_user(companion_user.id)] == [
            NotificationType.PAYMENT_RECEIVED
        ]

    def test_same_charge_under_a_new_event_id_is_a_no_op(
        self, unit_db, verifier, notification_service, unpaid_booking, companion_user
    ):
        first = _charge(unpaid_booking, gateway_id=1)
        second = _charge(unpaid_booking, gateway_id=2)

        verifier.handle(first, compute_signature(first, SECRET))
        outcome = verifier.handle(second, compute_signature(second, SECRET))

        unit_db.refresh(unpaid_booking)
        assert outcome.duplicate is False
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.PAID)
        assert len(notification_service.list_for_user(companion_user.id)) == 1

    def test_amount_mismatch_is_rejected_and_flagged(self, unit_db, verifier, unpaid_booking):
        body = _charge(unpaid_booking, amount=9000)

        with pytest.raises(PaymentAmountMismatch):
            verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(unpaid_booking)
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.PENDING)
        assert unpaid_booking.needs_reconciliation is True
        assert "PAYMENT_AMOUNT_MISMATCH" in unpaid_booking.reconciliation_reason
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.REJECTED
        assert entry.related_booking_id == unpaid_booking.id
        assert "PAYMENT_AMOUNT_MISMATCH" in entry.processing_error

    def test_redelivered_mismatch_is_acknowledged_as_duplicate(
        self, unit_db, verifier, booking_service, unpaid_booking
    ):
        body = _charge(unpaid_booking, amount=9000)
        signature = compute_signature(body, SECRET)

        with patch.object(
            booking_service, "apply_gateway_charge", wraps=booking_service.apply_gateway_charge
        ) as apply_charge:
            with pytest.raises(PaymentAmountMismatch):
                verifier.handle(body, signature)
            second = verifier.handle(body, signature)

        assert apply_charge.call_count == 1
        assert second.duplicate is True
        assert second.status == WebhookEventStatus.REJECTED
        assert second.booking_id == unpaid_booking.id
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.REJECTED
        assert entry.retry_count == 0

    def test_failed_event_is_retried_on_redelivery(
        self, unit_db, verifier, client_user, companion_user
    ):
        body = _body(
            "charge.success", id=77, reference=REFERENCE, amount=10000, metadata={}
        )
        signature = compute_signature(body, SECRET)

        with pytest.raises(NotFoundException):
            verifier.handle(body, signature)

        booking = create_booking(
            unit_db, client=client_user, companion=companion_user, payment_reference=REFERENCE
        )
        outcome = verifier.handle(body, signature)

        unit_db.refresh(booking)
        assert outcome.duplicate is False
        assert booking.payment_status == PaymentStatus.PAID.value
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.PROCESSED
        assert entry.retry_count == 1

    def test_charge_failed_marks_payment_failed(self, unit_db, verifier, unpaid_booking):
        body = _body("charge.failed", id=5, reference=REFERENCE, status="failed")

        verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(unpaid_booking)
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.FAILED)

    def test_charge_success_after_an_earlier_failure_marks_paid(
        self, unit_db, verifier, notification_service, unpaid_booking, companion_user
    ):
        failed = _body("charge.failed", id=5, reference=REFERENCE, status="failed")
        succeeded = _charge(unpaid_booking, gateway_id=6)

        verifier.handle(failed, compute_signature(failed, SECRET))
        outcome = verifier.handle(succeeded, compute_signature(succeeded, SECRET))

        unit_db.refresh(unpaid_booking)
        assert outcome.status == WebhookEventStatus.PROCESSED
        assert unpaid_booking.status_pair == (BookingStatus.PENDING, PaymentStatus.PAID)
        assert unpaid_booking.paid_at is not None
        assert [n.event_type for n in notification_service.list_for_user(companion_user.id)] == [
            NotificationType.PAYMENT_RECEIVED
        ]

    def test_late_charge_failure_is_ignored(
        self, unit_db, verifier, client_user, companion_user
    ):
        booking = create_booking(
            unit_db,
            client=client_user,
            companion=companion_user,
            payment_status=PaymentStatus.PAID,
            payment_reference=REFERENCE,
        )
        body = _body("charge.failed", id=6, reference=REFERENCE)

        outcome = verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(booking)
        assert outcome.status == WebhookEventStatus.IGNORED
        assert booking.payment_status == PaymentStatus.PAID.value
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.IGNORED
        assert entry.related_booking_id == booking.id


class TestRefundEvents:
    def test_refund_processed(self, unit_db, verifier, client_user, companion_user):
        booking = create_booking(
            unit_db,
            client=client_user,
            companion=companion_user,
            booking_status=BookingStatus.CANCELLED,
            payment_status=PaymentStatus.REFUND_PENDING,
            payment_reference=REFERENCE,
        )
        body = _body("refund.processed", id=901, transaction_reference=REFERENCE)

        outcome = verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(booking)
        assert outcome.event_id == "refund.processed:901"
        assert booking.status_pair == (BookingStatus.CANCELLED, PaymentStatus.REFUNDED)
        assert booking.refund_id == "901"

    def test_refund_failed_flags_reconciliation(
        self, unit_db, verifier, client_user, companion_user
    ):
        booking = create_booking(
            unit_db,
            client=client_user,
            companion=companion_user,
            booking_status=BookingStatus.EXPIRED,
            payment_status=PaymentStatus.REFUND_PENDING,
            payment_reference=REFERENCE,
        )
        body = _body(
            "refund.failed",
            id=902,
            transaction={"reference": REFERENCE},
            gateway_response="Bank rejected",
        )

        verifier.handle(body, compute_signature(body, SECRET))

        unit_db.refresh(booking)
        assert booking.payment_status == PaymentStatus.REFUND_PENDING.value
        assert booking.needs_reconciliation is True
        assert "Bank rejected" in booking.reconciliation_reason


class TestPayloads:
    def test_unhandled_event_is_ignored(self, unit_db, verifier):
        body = _body("transfer.success", id=12, reference="trf_1")

        outcome = verifier.handle(body, compute_signature(body, SECRET))

        assert outcome.status == WebhookEventStatus.IGNORED
        [entry] = _ledger(unit_db)
        assert entry.status == WebhookEventStatus.IGNORED

    @pytest.mark.parametrize(
        "raw",
        [b"not json", b"[]", b'{"data": {}}', b'{"event": "charge.success"}'],
    )
    def test_malformed_payload_is_rejected_before_the_ledger(self, unit_db, verifier, raw):
        with pytest.raises(ValidationException) as exc_info:
            verifier.handle(raw, compute_signature(raw, SECRET))

        assert exc_info.value.code == "INVALID_PAYLOAD"
        assert _ledger(unit_db) == []

    def test_event_id_falls_back_to_reference(self):
        assert (
            WebhookVerifier.event_id_for("charge.success", {"reference": "bk_1"})
            == "charge.success:bk_1"
        )


class TestLedger:
    def test_stale_received_claim_is_taken_over(self, unit_db):
        ledger = WebhookLedgerService(unit_db)
        claim = ledger.claim(
            source=WEBHOOK_SOURCE, event_id="charge.success:1", event_type="charge.success",
            payload={},
        )
        unit_db.commit()
        assert claim.claimed is True

        soon = datetime.now(timezone.utc) + timedelta(minutes=1)
        again = ledger.claim(
            source=WEBHOOK_SOURCE, event_id="charge.success:1", event_type="charge.success",
            payload={}, now=soon,
        )
        assert again.duplicate is True

        later = datetime.now(timezone.utc) + timedelta(minutes=10)
        taken = ledger.claim(
            source=WEBHOOK_SOURCE, event_id="charge.success:1", event_type="charge.success",
            payload={}, now=later,
        )
        assert taken.claimed is True
        assert taken.event.retry_count == 1

    def test_events_for_booking(self, unit_db, verifier, unpaid_booking):
        body = _charge(unpaid_booking)
        verifier.handle(body, compute_signature(body, SECRET))

        events = WebhookLedgerService(unit_db).events_for_booking(unpaid_booking.id)

        assert [event.event_id for event in events] == ["charge.success:4001"]
