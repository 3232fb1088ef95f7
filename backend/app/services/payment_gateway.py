"""
Payment gateway adapter for booking payments.

Wraps the Paystack client behind three booking-shaped operations
(initialize, verify, refund) and folds every gateway failure into the
domain's ``PaymentGatewayError`` / ``RefundFailure``. Amounts cross this
boundary in major units (``Decimal`` naira); the kobo conversion happens
here and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
import json
import logging
from typing import Any, Dict, Mapping, Optional

import ulid

from app.core.config import settings
from app.core.exceptions import (
    PaymentAmountMismatch,
    PaymentGatewayError,
    RefundFailure,
    ValidationException,
)
from app.integrations.paystack_client import FakePaystackClient, PaystackClient, PaystackError
from app.services.commission_calculator import from_minor_units, round2, to_minor_units

logger = logging.getLogger(__name__)

VERIFY_SUCCESS = "success"
VERIFY_FAILED = "failed"
VERIFY_PENDING = "pending"

# Paystack transaction statuses that mean the money will never arrive.
_FAILED_GATEWAY_STATUSES = frozenset({"failed", "reversed"})


@dataclass(frozen=True)
class InitializeResult:
    authorization_url: str
    reference: str
    access_code: Optional[str] = None


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of a transaction lookup.

    ``status`` is ``success`` or ``failed`` once the gateway has settled the
    charge; ``pending`` while the client is still on the checkout page.
    """

    status: str
    amount: Decimal
    reference: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    gateway_status: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == VERIFY_SUCCESS


@dataclass(frozen=True)
class RefundResult:
    status: str
    refund_id: Optional[str] = None


def generate_reference(booking_id: str) -> str:
    return f"bk_{booking_id}_{ulid.ULID()}"


def check_captured_amount(expected: Any, actual: Any, *, reference: Optional[str] = None) -> None:
    """Raise ``PaymentAmountMismatch`` unless ``actual`` equals ``expected`` to the kobo."""
    expected_amount = round2(Decimal(str(expected)))
    actual_amount = round2(Decimal(str(actual)))
    if actual_amount != expected_amount:
        logger.error(
            "Captured amount does not match booking total",
            extra={
                "reference": reference,
                "expected": str(expected_amount),
                "actual": str(actual_amount),
            },
        )
        raise PaymentAmountMismatch(expected_amount, actual_amount, reference=reference)


def assert_amount_matches(result: VerifyResult, expected: Any) -> None:
    check_captured_amount(expected, result.amount, reference=result.reference)


def _json_safe(metadata: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: str(value) if isinstance(value, Decimal) else value for key, value in metadata.items()
    }


def _parse_metadata(raw: Any) -> Dict[str, Any]:
    # Paystack echoes metadata back as an object, a JSON string or "" depending on the caller.
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


class PaymentGatewayAdapter:
    """Booking-facing facade over the Paystack API."""

    def __init__(self, client: PaystackClient, *, currency: Optional[str] = None) -> None:
        self.client = client
        self.currency = currency or settings.payment_currency
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_fake(self) -> bool:
        return isinstance(self.client, FakePaystackClient)

    def initialize(
        self,
        payer_email: str,
        amount: Any,
        metadata: Mapping[str, Any],
        settlement_target: Optional[str] = None,
        reference: Optional[str] = None,
        callback_url: Optional[str] = None,
    ) -> InitializeResult:
        """
        Open a checkout for ``amount`` (major units).

        With a ``settlement_target`` sub-account the platform keeps
        ``metadata["platform_fee"]`` as the transaction charge and the rest
        settles to the companion; without one the platform receives it all.
        """
        booking_id = metadata.get("booking_id")
        if not booking_id:
            raise ValidationException(
                "Payment metadata must carry booking_id",
                code="MISSING_BOOKING_ID",
            )
        if not payer_email:
            raise ValidationException("Payer email is required", code="MISSING_PAYER_EMAIL")

        reference = reference or generate_reference(str(booking_id))
        payload_metadata = _json_safe(metadata)
        if callback_url:
            payload_metadata.setdefault("callback_url", callback_url)

        payload: Dict[str, Any] = {
            "email": payer_email,
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "reference": reference,
            "metadata": payload_metadata,
            "callback_url": callback_url,
        }
        if settlement_target:
            platform_fee = metadata.get("platform_fee")
            if platform_fee is None:
                raise ValidationException(
                    "platform_fee is required when settling to a sub-account",
                    code="MISSING_PLATFORM_FEE",
                    details={"booking_id": booking_id},
                )
            payload["subaccount"] = settlement_target
            payload["transaction_charge"] = to_minor_units(platform_fee)

        try:
            data = self.client.initialize_transaction(**payload)
        except PaystackError as exc:
            raise self._gateway_error(exc, "initialize") from exc

        authorization_url = data.get("authorization_url")
        if not authorization_url:
            raise PaymentGatewayError(
                "Gateway did not return an authorization URL",
                operation="initialize",
                error_body=data,
            )
        self.logger.info(
            "Payment initialized",
            extra={
                "booking_id": booking_id,
                "reference": reference,
                "split": bool(settlement_target),
            },
        )
        return InitializeResult(
            authorization_url=str(authorization_url),
            reference=str(data.get("reference") or reference),
            access_code=data.get("access_code"),
        )

    def verify(self, reference: str) -> VerifyResult:
        try:
            data = self.client.verify_transaction(reference)
        except PaystackError as exc:
            raise self._gateway_error(exc, "verify") from exc

        raw_amount = data.get("amount")
        if raw_amount is None:
            raise PaymentGatewayError(
                "Gateway verification response has no amount",
                operation="verify",
                error_body=data,
            )
        try:
            amount = from_minor_units(int(raw_amount))
        except (TypeError, ValueError) as exc:
            raise PaymentGatewayError(
                "Gateway verification response has a malformed amount",
                operation="verify",
                error_body=data,
            ) from exc

        gateway_status = str(data.get("status") or "").lower()
        if gateway_status == "success":
            status = VERIFY_SUCCESS
        elif gateway_status in _FAILED_GATEWAY_STATUSES:
            status = VERIFY_FAILED
        else:
            status = VERIFY_PENDING

        return VerifyResult(
            status=status,
            amount=amount,
            reference=str(data.get("reference") or reference),
            metadata=_parse_metadata(data.get("metadata")),
            gateway_status=gateway_status or None,
        )

    def refund(self, reference: str, amount: Any = None) -> RefundResult:
        """Refund ``reference`` in full, or ``amount`` of it; raises ``RefundFailure``."""
        minor_amount = to_minor_units(amount) if amount is not None else None
        try:
            data = self.client.create_refund(transaction=reference, amount=minor_amount)
        except PaystackError as exc:
            self.logger.error(
                "Refund call failed",
                extra={"reference": reference, "gateway_status": exc.status_code},
            )
            failure = RefundFailure(reference, str(exc))
            failure.gateway_status = exc.status_code
            failure.error_body = exc.error_body
            raise failure from exc

        refund_id = data.get("id")
        return RefundResult(
            status=str(data.get("status") or "pending"),
            refund_id=str(refund_id) if refund_id is not None else None,
        )

    # Kept on the adapter too so callers holding only the adapter can check amounts.
    assert_amount_matches = staticmethod(assert_amount_matches)

    @staticmethod
    def _gateway_error(exc: PaystackError, operation: str) -> PaymentGatewayError:
        return PaymentGatewayError(
            str(exc),
            status_code=exc.status_code,
            operation=operation,
            error_body=exc.error_body,
        )


def build_payment_gateway() -> PaymentGatewayAdapter:
    """Adapter wired from settings; falls back to the in-memory client outside production."""
    if settings.paystack_fake:
        return PaymentGatewayAdapter(FakePaystackClient())
    try:
        client = PaystackClient(
            secret_key=settings.paystack_secret_key,
            base_url=settings.paystack_base_url,
            timeout=settings.gateway_timeout_seconds,
        )
    except ValueError as exc:
        if settings.environment == "production":
            raise
        logger.warning(
            "Falling back to FakePaystackClient due to configuration error",
            extra={"error": str(exc), "environment": settings.environment},
        )
        return PaymentGatewayAdapter(FakePaystackClient())
    return PaymentGatewayAdapter(client)
