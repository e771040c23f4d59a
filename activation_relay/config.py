"""
Application Configuration - Pydantic Settings for type-safe config.

Settings are loaded once at startup and handed to the app factory, which keeps
them on ``app.state``. Handlers reach them through a dependency, never through
a module global.

FAIL FAST - The shared forward secret and receiver URL are validated at startup.
"""

import sys
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from activation_relay import __version__
from activation_relay.models.api import CheckoutMode, ProductType
from activation_relay.models.domain import PriceSelection

# Values that shipped as fallbacks in earlier deployments; never accept them.
INSECURE_SECRET_PLACEHOLDERS = frozenset(
    {"changeme", "change_me", "change-me", "secret", "your_secret_here", "default"}
)


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    # Proxies whose X-Forwarded-Proto/For headers uvicorn trusts (comma-separated or "*")
    forwarded_allow_ips: str = "127.0.0.1"
    api_title: str = "Activation Relay"
    api_version: str = __version__
    api_description: str = "Stripe checkout and webhook relay for the FiveM game server"

    # Payment Provider - Stripe (optional: endpoints fail closed when empty)
    stripe_secret_key: str = ""  # sk_test_... or sk_live_...
    stripe_webhook_secret: str = ""  # whsec_...
    stripe_price_monthly: str = ""  # price_... (recurring)
    stripe_price_lifetime: str = ""  # price_... (one-time)

    # Downstream game-server receiver - NO DEFAULTS
    fivem_http_secret: str = ""
    fivem_http_url: str = ""
    fivem_http_timeout: float = 10.0

    # Redirect targets; falls back to the request's own base URL when unset
    base_url: str | None = None

    # CORS (comma-separated origins)
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability
    metrics_enabled: bool = True
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "activation-relay"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        Every forward carries the shared secret, so the relay refuses to start
        without a real one rather than falling back to a known placeholder.
        """
        errors: list[str] = []

        if not self.fivem_http_secret:
            errors.append("FIVEM_HTTP_SECRET is required but empty or missing")
        elif self.fivem_http_secret.strip().lower() in INSECURE_SECRET_PLACEHOLDERS:
            errors.append("FIVEM_HTTP_SECRET is set to a placeholder value")

        if not self.fivem_http_url:
            errors.append("FIVEM_HTTP_URL is required but empty or missing")
        elif not self.fivem_http_url.startswith(("http://", "https://")):
            errors.append(f"FIVEM_HTTP_URL must be an http(s) URL, got: {self.fivem_http_url[:40]}")

        if self.fivem_http_timeout <= 0:
            errors.append("FIVEM_HTTP_TIMEOUT must be positive")

        if self.log_format not in ("json", "console"):
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - RELAY CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self

    @property
    def stripe_configured(self) -> bool:
        """Whether checkout sessions can be created."""
        return bool(self.stripe_secret_key)

    @property
    def webhook_configured(self) -> bool:
        """Whether inbound Stripe webhooks can be verified."""
        return bool(self.stripe_secret_key and self.stripe_webhook_secret)

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins as a list."""
        origins = [o.strip() for o in self.cors_origins.split(",")]
        return [o for o in origins if o]

    def price_for(self, product_type: ProductType) -> PriceSelection:
        """Static product type -> (price id, checkout mode) mapping."""
        if product_type == ProductType.LIFETIME:
            return PriceSelection(price_id=self.stripe_price_lifetime, mode=CheckoutMode.PAYMENT)
        return PriceSelection(price_id=self.stripe_price_monthly, mode=CheckoutMode.SUBSCRIPTION)

    def redirect_base(self, fallback: str) -> str:
        """Base URL for checkout redirect targets, without a trailing slash."""
        return (self.base_url or fallback).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    return Settings()
