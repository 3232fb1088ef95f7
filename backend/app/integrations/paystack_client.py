"""Minimal Paystack API client for booking payments and refunds."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, cast

import httpx
from pydantic import SecretStr
import ulid

logger = logging.getLogger(__name__)


class PaystackError(RuntimeError):
    """Raised when the Paystack API responds with an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_body: Any | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body
        self.timed_out = timed_out


class PaystackClient:
    """Thin client for the Paystack REST API.

    Every Paystack response is wrapped in ``{"status": bool, "message": str,
    "data": ...}``; the public methods return ``data`` and treat
    ``status: false`` as an error even on a 2xx response.
    """

    def __init__(
        self,
        *,
        secret_key: str | SecretStr,
        base_url: str = "https://api.paystack.co",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        secret_value = (
            secret_key.get_secret_value() if isinstance(secret_key, SecretStr) else secret_key
        )
        if not secret_value:
            raise ValueError("Paystack secret key must be provided")

        self._secret_key = secret_value
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def initialize_transaction(self, **payload: Any) -> Dict[str, Any]:
        """Start a checkout; amounts are in kobo."""

        body: Dict[str, Any] = {key: value for key, value in payload.items() if value is not None}
        return self._data(self.request("POST", "/transaction/initialize", json_body=body))

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """Fetch the authoritative status of a transaction by reference."""

        if not reference:
            raise ValueError("reference must be provided")
        return self._data(self.request("GET", f"/transaction/verify/{reference}"))

    def create_refund(self, *, transaction: str, amount: int | None = None) -> Dict[str, Any]:
        """Refund a transaction in full, or ``amount`` kobo of it."""

        body: Dict[str, Any] = {"transaction": transaction}
        if amount:
            body["amount"] = amount
        return self._data(self.request("POST", "/refund", json_body=body))

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Perform a raw Paystack API request and return the parsed JSON envelope."""

        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {self._secret_key}",
            },
        ) as client:
            request = client.build_request(method, url, json=json_body, params=params)
            logger.debug(
                "PaystackClient request",
                extra={"evt": "paystack_request", "method": request.method, "path": path},
            )
            try:
                response = client.send(request)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                error_payload: Any | None = None
                try:
                    error_payload = exc.response.json()
                except json.JSONDecodeError:
                    error_payload = exc.response.text

                logger.error(
                    "Paystack API error %s for %s %s: %s",
                    status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                message = f"Paystack API responded with status {status}"
                if isinstance(error_payload, dict) and error_payload.get("message"):
                    message = f"{message}: {error_payload['message']}"
                raise PaystackError(
                    message,
                    status_code=status,
                    error_body=error_payload,
                ) from exc
            except httpx.TimeoutException as exc:
                logger.error("Paystack request timed out for %s %s", method, path)
                raise PaystackError("Paystack request timed out", timed_out=True) from exc
            except httpx.RequestError as exc:
                logger.error("Paystack request failure for %s %s: %s", method, path, str(exc))
                raise PaystackError("Failed to reach Paystack API") from exc

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from Paystack for %s %s: %s", method, path, response.text)
            raise PaystackError(
                "Received malformed JSON from Paystack", status_code=response.status_code
            ) from exc

        if not isinstance(payload, dict):
            raise PaystackError(
                "Unexpected Paystack response shape",
                status_code=response.status_code,
                error_body=payload,
            )
        if payload.get("status") is False:
            logger.error(
                "Paystack rejected %s %s: %s", method, path, payload.get("message", "unknown")
            )
            raise PaystackError(
                str(payload.get("message") or "Paystack rejected the request"),
                status_code=response.status_code,
                error_body=payload,
            )
        return cast(Dict[str, Any], payload)

    @staticmethod
    def _data(envelope: Dict[str, Any]) -> Dict[str, Any]:
        data = envelope.get("data")
        if not isinstance(data, dict):
            raise PaystackError("Paystack response is missing its data object", error_body=envelope)
        return data


class FakePaystackClient(PaystackClient):
    """In-memory stand-in that mimics Paystack for local and test flows.

    Remembers initialized transactions so a later verify reports the amount
    that was actually requested.
    """

    def __init__(self) -> None:
        super().__init__(secret_key="sk_test_fake", base_url="https://api.paystack.co")
        self._logger = logging.getLogger(self.__class__.__name__)
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.refunds: list[Dict[str, Any]] = []

    def initialize_transaction(self, **payload: Any) -> Dict[str, Any]:
        reference = payload.get("reference") or f"fake_{ulid.ULID()}"
        access_code = f"ac_fake_{ulid.ULID()}"
        self.transactions[reference] = {
            "id": len(self.transactions) + 1,
            "reference": reference,
            "amount": payload.get("amount"),
            "currency": payload.get("currency", "NGN"),
            "metadata": payload.get("metadata") or {},
            "status": "success",
        }
        self._logger.debug("Fake transaction initialized", extra={"reference": reference})
        return {
            "authorization_url": f"https://checkout.paystack.com/{access_code}",
            "access_code": access_code,
            "reference": reference,
        }

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        transaction = self.transactions.get(reference)
        if transaction is None:
            raise PaystackError("Transaction reference not found", status_code=404)
        return dict(transaction)

    def create_refund(self, *, transaction: str, amount: int | None = None) -> Dict[str, Any]:
        original = self.transactions.get(transaction, {})
        refund = {
            "id": len(self.refunds) + 1,
            "transaction": {"reference": transaction},
            "amount": amount or original.get("amount"),
            "status": "pending",
        }
        self.refunds.append(refund)
        self._logger.debug("Fake refund created", extra={"reference": transaction})
        return refund
