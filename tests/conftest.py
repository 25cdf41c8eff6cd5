"""
Shared pytest fixtures for the payout relay tests.

PayPal is replaced by FakePayPal behind httpx.MockTransport, so no test
touches the network.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from main import app
from payments.routers.paypal_router import get_paypal_service
from services.paypal import PayPalService
from services.paypal_settings import PayPalCredentials, PayPalSettings

SANDBOX_URL = "https://api-m.sandbox.paypal.com"
LIVE_URL = "https://api-m.paypal.com"


class FakePayPal:
    """Records every request and answers like the PayPal API."""

    def __init__(self):
        self.requests = []
        self.token_status = 200
        self.token_body = None
        self.payout_failures = {}  # payout call number (1-based) -> (status, body)
        self.payout_body = None
        self.raise_on = None  # "token" or "payout" to simulate a transport error

    @property
    def token_requests(self):
        return [r for r in self.requests if r.url.path == "/v1/oauth2/token"]

    @property
    def payout_requests(self):
        return [r for r in self.requests if r.url.path == "/v1/payments/payouts"]

    def payout_payloads(self):
        return [json.loads(r.content) for r in self.payout_requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/v1/oauth2/token":
            if self.raise_on == "token":
                raise httpx.ConnectError("connection refused", request=request)
            body = self.token_body
            if body is None:
                body = {"access_token": f"token-{len(self.token_requests)}", "expires_in": 32400}
            return httpx.Response(self.token_status, json=body)

        if request.url.path == "/v1/payments/payouts":
            if self.raise_on == "payout":
                raise httpx.ReadTimeout("timed out", request=request)
            call_number = len(self.payout_requests)
            if call_number in self.payout_failures:
                status, body = self.payout_failures[call_number]
                if isinstance(body, str):
                    return httpx.Response(status, text=body)
                return httpx.Response(status, json=body)
            if self.payout_body is not None:
                return httpx.Response(201, json=self.payout_body)
            return httpx.Response(201, json={
                "batch_header": {
                    "payout_batch_id": f"PB-{call_number}",
                    "batch_status": "PENDING",
                }
            })

        return httpx.Response(404, json={"name": "NOT_FOUND"})


def make_settings(**overrides):
    values = dict(
        sandbox=PayPalCredentials(client_id="sb-id", client_secret="sb-secret", base_url=SANDBOX_URL),
        live=PayPalCredentials(client_id="live-id", client_secret="live-secret", base_url=LIVE_URL),
    )
    values.update(overrides)
    return PayPalSettings(**values)


@pytest.fixture
def fake_paypal():
    return FakePayPal()


@pytest.fixture
def paypal_settings():
    return make_settings()


@pytest.fixture
def paypal_service(paypal_settings, fake_paypal):
    return PayPalService(paypal_settings, transport=httpx.MockTransport(fake_paypal.handle))


@pytest.fixture
def client(paypal_service):
    """TestClient wired to the fake PayPal."""
    app.dependency_overrides[get_paypal_service] = lambda: paypal_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def payment():
    """A complete, valid payment record."""
    return {
        "employee_id": "EMP-001",
        "employee_name": "Ana Pérez",
        "amount": 150.5,
        "paypal_email": "ana@example.com",
        "payment_mode": "sandbox",
        "period_start": "2026-10-01",
        "period_end": "2026-10-15",
    }


@pytest.fixture
def make_service(fake_paypal):
    """Factory for a PayPalService with overridden settings, talking to the fake PayPal."""
    def _make(**overrides):
        return PayPalService(make_settings(**overrides), transport=httpx.MockTransport(fake_paypal.handle))
    return _make
