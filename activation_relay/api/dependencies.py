"""
FastAPI Dependencies - Settings and service wiring.

Everything a handler needs lives on ``app.state``, placed there once by the
app factory and lifespan.
"""

import httpx
from fastapi import Depends, Request

from activation_relay.config import Settings
from activation_relay.services.forwarder import GameServerForwarder
from activation_relay.services.payment_provider import PaymentProvider
from activation_relay.services.relay import RelayService


def get_settings(request: Request) -> Settings:
    """Settings snapshot the app was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Process-wide HTTP client for downstream forwards."""
    client: httpx.AsyncClient = request.app.state.http_client
    return client


def get_payment_provider(request: Request) -> PaymentProvider | None:
    """Configured payment provider, or None when Stripe is not configured."""
    provider: PaymentProvider | None = request.app.state.payment_provider
    return provider


def get_relay_service(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    provider: PaymentProvider | None = Depends(get_payment_provider),
) -> RelayService:
    """Build the relay service for this request."""
    forwarder = GameServerForwarder(client=client, url=settings.fivem_http_url)
    return RelayService(settings=settings, forwarder=forwarder, provider=provider)
