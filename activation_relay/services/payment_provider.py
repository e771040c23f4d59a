"""
Payment Provider Protocol - Provider-agnostic interface.
"""

from typing import Protocol

from activation_relay.models.domain import (
    CheckoutSessionIntent,
    CheckoutSessionResult,
    WebhookEvent,
)


class PaymentProvider(Protocol):
    """
    Payment provider protocol.

    The relay only needs two things from a provider: a hosted checkout session
    and signature-verified webhook events.
    """

    async def create_checkout_session(self, intent: CheckoutSessionIntent) -> CheckoutSessionResult:
        """
        Create a hosted checkout session with the provider.

        Args:
            intent: Checkout session details

        Returns:
            Provider session ID and redirect URL

        Raises:
            PaymentProviderError: If session creation fails
        """
        ...

    async def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse a webhook event from the provider.

        Args:
            payload: Raw webhook payload, exactly as received
            signature: Webhook signature header for verification

        Returns:
            Parsed webhook event

        Raises:
            WebhookVerificationError: If signature verification fails
        """
        ...
