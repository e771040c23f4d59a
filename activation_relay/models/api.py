"""
API Models - Pydantic models for request/response validation.

Checkout input is validated by the relay service, not by the model, so that a
bad ``type`` is reported as a plain 400 and never reaches the provider.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProductType(str, Enum):
    """Purchasable product types."""

    MONTHLY = "monthly"
    LIFETIME = "lifetime"


class CheckoutMode(str, Enum):
    """Stripe Checkout billing mode."""

    SUBSCRIPTION = "subscription"
    PAYMENT = "payment"


class ActivationAction(str, Enum):
    """Action the game server performs for an activation code."""

    ACTIVATE_SUB = "activate_sub"
    ACTIVATE_LIFETIME = "activate_lifetime"

    @classmethod
    def for_product_type(cls, product_type: str | None) -> "ActivationAction":
        """Only an exact "lifetime" activates lifetime; anything else, unset included, is a sub."""
        if product_type == ProductType.LIFETIME.value:
            return cls.ACTIVATE_LIFETIME
        return cls.ACTIVATE_SUB


# ============================================================================
# Checkout Models
# ============================================================================


class CheckoutSessionRequest(BaseModel):
    """POST /create-checkout-session request body."""

    model_config = ConfigDict(populate_by_name=True)

    code: str | None = Field(None, description="Activation code echoed back via session metadata")
    product_type: str | None = Field(None, alias="type", description="monthly or lifetime")


class CheckoutSessionResponse(BaseModel):
    """POST /create-checkout-session response."""

    url: str


class ErrorResponse(BaseModel):
    """JSON error body."""

    error: str


# ============================================================================
# Webhook Models
# ============================================================================


class WebhookAck(BaseModel):
    """Acknowledgment returned to Stripe for every verified event."""

    received: bool = True


class ExternalEventBody(BaseModel):
    """
    POST /webhook request body.

    Values pass through untouched; keys the caller did not send stay unset.
    """

    model_config = ConfigDict(extra="ignore")

    event: Any = None
    amount: Any = None
    distance: Any = None
    duration: Any = None

    def present_metrics(self) -> dict[str, Any]:
        """Only the metric fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)
