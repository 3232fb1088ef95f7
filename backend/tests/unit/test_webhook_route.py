"""HTTP surface: Paystack webhook endpoint, operator state view and health."""

from __future__ import annotations

import json

from fastapi.testclient import TestClient
import pytest

from app.api.dependencies.auth import get_credential_verifier
from app.api.dependencies.services import get_booking_service, get_webhook_verifier
from app.core.enums import RoleName
from app.main import app
from app.models.booking import PaymentStatus
from app.principal import Principal
from app.services.webhook_verifier import WebhookVerifier, compute_signature
from tests.factories.booking_builders import create_booking

SECRET = "whsec_route"
WEBHOOK_PATH = "/api/v1/webhooks/paystack"


@pytest.fixture
def booking(unit_db, client_user, companion_user):
    return create_booking(
        unit_db, client=client_user, companion=companion_user, payment_reference="bk_route_1"
    )


@pytest.fixture
def client(unit_db, booking_service, client_principal):
    principals = {
        "admin-token": Principal(user_id="admin-1", role=RoleName.ADMIN),
        "client-token": client_principal,
    }

    def verify_token(token: str) -> Principal:
        try:
            return principals[token]
        except KeyError:
            raise ValueError("unknown token") from None

    app.dependency_overrides[get_webhook_verifier] = lambda: WebhookVerifier(
        unit_db, booking_service=booking_service, secret=SECRET
    )
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    app.dependency_overrides[get_credential_verifier] = lambda: verify_token
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _charge_body(booking, *, amount: int = 10000, gateway_id: int = 1) -> bytes:
    return json.dumps(
        {
            "event": "charge.success",
            "data": {
                "id": gateway_id,
                "reference": booking.payment_reference,
                "amount": amount,
                "metadata": {"booking_id": booking.id},
            },
        }
    ).encode("utf-8")


def _post(client, body: bytes, *, header: str = "X-Signature", signature=None):
    headers = {"Content-Type": "application/json"}
    headers[header] = signature if signature is not None else compute_signature(body, SECRET)
    return client.post(WEBHOOK_PATH, content=body, headers=headers)


class TestPaystackWebhook:
    def test_valid_delivery_is_acknowledged(self, client, unit_db, booking):
        response = _post(client, _charge_body(booking))

        assert response.status_code == 200
        assert response.json() == {"ok": True, "duplicate": False}
        unit_db.refresh(booking)
        assert booking.payment_status == PaymentStatus.PAID.value

    def test_redelivery_is_acknowledged_as_duplicate(self, client, booking):
        body = _charge_body(booking)

        _post(client, body)
        response = _post(client, body)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "duplicate": True}

    def test_paystack_signature_header_is_accepted(self, client, booking):
        response = _post(client, _charge_body(booking), header="X-Paystack-Signature")

        assert response.status_code == 200

    def test_bad_signature_is_unauthorized(self, client, unit_db, booking):
        response = _post(client, _charge_body(booking), signature="0" * 128)

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["code"] == "INVALID_SIGNATURE"
        unit_db.refresh(booking)
        assert booking.payment_status == PaymentStatus.PENDING.value

    def test_amount_mismatch_is_unprocessable(self, client, unit_db, booking):
        response = _post(client, _charge_body(booking, amount=9000))

        assert response.status_code == 422
        assert response.json()["code"] == "PAYMENT_AMOUNT_MISMATCH"
        unit_db.refresh(booking)
        assert booking.payment_status == PaymentStatus.PENDING.value

    def test_redelivered_mismatch_is_acknowledged(self, client, unit_db, booking):
        body = _charge_body(booking, amount=9000)

        first = _post(client, body)
        second = _post(client, body)

        assert first.status_code == 422
        assert second.status_code == 200
        assert second.json() == {"ok": True, "duplicate": True}
        unit_db.refresh(booking)
        assert booking.needs_reconciliation is True

    def test_uppercase_signature_is_unauthorized(self, client, booking):
        body = _charge_body(booking)

        response = _post(client, body, signature=compute_signature(body, SECRET).upper())

        assert response.status_code == 401

    def test_malformed_body_is_rejected(self, client):
        response = _post(client, b"not json")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PAYLOAD"


class TestAdminBookingState:
    def _get(self, client, booking, token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return client.get(f"/api/v1/admin/bookings/{booking.id}/state", headers=headers)

    def test_admin_sees_state_and_webhook_history(self, client, booking):
        _post(client, _charge_body(booking))

        response = self._get(client, booking, "admin-token")

        assert response.status_code == 200
        payload = response.json()
        assert payload["booking_id"] == booking.id
        assert payload["booking_status"] == "pending"
        assert payload["payment_status"] == "paid"
        assert payload["webhook_event_ids"] == ["charge.success:1"]

    def test_non_admin_is_forbidden(self, client, booking):
        assert self._get(client, booking, "client-token").status_code == 403

    def test_missing_token_is_unauthorized(self, client, booking):
        assert self._get(client, booking).status_code == 401

    def test_unknown_token_is_unauthorized(self, client, booking):
        assert self._get(client, booking, "nope").status_code == 401


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_prometheus_metrics_are_exposed(client, booking):
    _post(client, _charge_body(booking))

    response = client.get("/metrics/prometheus")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "booking_engine_webhook_events_total" in response.text
