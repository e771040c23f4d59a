"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fixtures for testing:
- Settings snapshots (fully configured and Stripe-less)
- A recording downstream receiver on httpx.MockTransport
- Stripe webhook payload builders and signers
- API test client wired to the recorder
"""

import hashlib
import hmac
import json
import os
import time
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("FIVEM_HTTP_SECRET", "env-shared-secret")
os.environ.setdefault("FIVEM_HTTP_URL", "http://127.0.0.1:30120/relay")
os.environ.setdefault("LOG_FORMAT", "console")

from activation_relay.config import Settings
from activation_relay.main import create_app
from activation_relay.models.domain import CheckoutSessionIntent, CheckoutSessionResult, WebhookEvent

SHARED_SECRET = "test-shared-secret"
DOWNSTREAM_URL = "http://fivem.test:30120/relay"
WEBHOOK_SECRET = "whsec_test_signing_secret"
BASE_URL = "https://relay.example.com"


# ============================================================================
# Settings Fixtures
# ============================================================================


def make_settings(**overrides: Any) -> Settings:
    """Settings with every Stripe value configured, ignoring any .env file."""
    values: dict[str, Any] = {
        "fivem_http_secret": SHARED_SECRET,
        "fivem_http_url": DOWNSTREAM_URL,
        "stripe_secret_key": "sk_test_fake_key",
        "stripe_webhook_secret": WEBHOOK_SECRET,
        "stripe_price_monthly": "price_monthly_test",
        "stripe_price_lifetime": "price_lifetime_test",
        "base_url": BASE_URL,
        "log_format": "console",
        "tracing_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def relay_settings() -> Settings:
    """Fully configured settings."""
    return make_settings()


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings with no Stripe key or webhook secret."""
    return make_settings(stripe_secret_key="", stripe_webhook_secret="")


# ============================================================================
# Downstream Receiver Fixtures
# ============================================================================


class DownstreamRecorder:
    """Stands in for the game-server receiver and records every forward."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.connect_error = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.connect_error:
            raise httpx.ConnectError("Connection refused", request=request)
        return httpx.Response(self.status_code)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def downstream() -> DownstreamRecorder:
    """Recording downstream receiver that answers 200."""
    return DownstreamRecorder()


@pytest.fixture
def http_client(downstream: DownstreamRecorder) -> httpx.AsyncClient:
    """Async client routed to the recorder."""
    return httpx.AsyncClient(transport=httpx.MockTransport(downstream.handler))


# ============================================================================
# Payment Provider Fixtures
# ============================================================================


class FakePaymentProvider:
    """In-memory PaymentProvider that records calls."""

    def __init__(self, event: WebhookEvent | None = None) -> None:
        self.intents: list[CheckoutSessionIntent] = []
        self.verified: list[tuple[bytes, str]] = []
        self.event = event
        self.error: Exception | None = None

    async def create_checkout_session(self, intent: CheckoutSessionIntent) -> CheckoutSessionResult:
        if self.error is not None:
            raise self.error
        self.intents.append(intent)
        return CheckoutSessionResult(
            session_id="cs_test_fake",
            url=f"https://checkout.stripe.com/c/pay/cs_test_fake#{intent.code}",
        )

    async def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        self.verified.append((payload, signature))
        if self.error is not None:
            raise self.error
        assert self.event is not None
        return self.event


@pytest.fixture
def fake_provider() -> FakePaymentProvider:
    """Fake provider with no canned event."""
    return FakePaymentProvider()


# ============================================================================
# Stripe Webhook Helpers
# ============================================================================


def build_event(
    event_type: str = "checkout.session.completed",
    code: str | None = "ACT-123",
    product_type: str | None = "monthly",
    event_id: str = "evt_test_0001",
    metadata: dict[str, Any] | None = None,
) -> bytes:
    """Raw Stripe event body as Stripe would send it.

    ``metadata`` replaces the metadata built from ``code`` and ``product_type``.
    """
    if metadata is None:
        metadata = {}
        if code is not None:
            metadata["code"] = code
        if product_type is not None:
            metadata["type"] = product_type
    event = {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": "cs_test_session",
                "object": "checkout.session",
                "metadata": metadata,
            }
        },
    }
    return json.dumps(event).encode("utf-8")


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Stripe-Signature header value for a payload."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode()
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(relay_settings: Settings, http_client: httpx.AsyncClient) -> FastAPI:
    """Relay app using the real Stripe provider and the recording receiver."""
    return create_app(relay_settings, http_client=http_client)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client(
    unconfigured_settings: Settings, http_client: httpx.AsyncClient
) -> Iterator[TestClient]:
    """Test client for an app without Stripe credentials."""
    with TestClient(create_app(unconfigured_settings, http_client=http_client)) as test_client:
        yield test_client
