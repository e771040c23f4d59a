"""
Domain Models - Internal models using dataclasses.

All data structures are immutable dataclasses. The two command types are the
wire objects sent to the game-server receiver.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from activation_relay.models.api import ActivationAction, CheckoutMode, ProductType

EXTERNAL_EVENT_FIELDS = ("event", "amount", "distance", "duration")


@dataclass(frozen=True)
class PriceSelection:
    """Price identifier and billing mode for a product type."""

    price_id: str
    mode: CheckoutMode


@dataclass(frozen=True)
class CheckoutSessionIntent:
    """
    Provider-agnostic request to create a hosted checkout session.

    ``code`` and ``product_type`` are attached as metadata the provider echoes
    back on webhook delivery.
    """

    code: str
    product_type: ProductType
    price_id: str
    mode: CheckoutMode
    success_url: str
    cancel_url: str

    def __post_init__(self) -> None:
        """Validate intent fields."""
        if not self.code:
            raise ValueError("code cannot be empty")
        if not self.price_id:
            raise ValueError("price_id cannot be empty")


@dataclass(frozen=True)
class CheckoutSessionResult:
    """Hosted checkout session as returned by the provider."""

    session_id: str
    url: str


@dataclass(frozen=True)
class WebhookEvent:
    """Provider-agnostic view of a verified webhook event."""

    event_id: str
    event_type: str
    object_id: str | None
    metadata_code: str | None
    metadata_type: str | None


@dataclass(frozen=True)
class ActivationCommand:
    """Payment-originated activation forwarded to the game server."""

    secret: str
    action: ActivationAction
    code: str

    def to_payload(self) -> dict[str, str]:
        """JSON body for the receiver."""
        return {"secret": self.secret, "action": self.action.value, "code": self.code}


@dataclass(frozen=True)
class ExternalEventCommand:
    """External platform event forwarded verbatim to the game server."""

    secret: str
    code: str
    metrics: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the receiver; metric keys the caller omitted stay omitted."""
        payload: dict[str, Any] = {"secret": self.secret, "code": self.code}
        for name in EXTERNAL_EVENT_FIELDS:
            if name in self.metrics:
                payload[name] = self.metrics[name]
        return payload
