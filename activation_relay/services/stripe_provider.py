"""
Stripe Payment Provider Implementation.

The API key is passed per call so nothing is written to ``stripe.api_key``.
"""

import asyncio
import json
from typing import Any

import stripe
from structlog import get_logger

from activation_relay.exceptions import PaymentProviderError, WebhookVerificationError
from activation_relay.models.domain import (
    CheckoutSessionIntent,
    CheckoutSessionResult,
    WebhookEvent,
)

logger = get_logger(__name__)


class StripeProvider:
    """
    Stripe payment provider implementation.

    Implements the PaymentProvider protocol for Stripe Checkout.
    """

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        """
        Initialize Stripe provider.

        Args:
            api_key: Stripe secret API key
            webhook_secret: Stripe webhook signing secret
        """
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    async def create_checkout_session(self, intent: CheckoutSessionIntent) -> CheckoutSessionResult:
        """
        Create a Stripe Checkout Session.

        Args:
            intent: Checkout session details

        Returns:
            Session ID and hosted checkout URL

        Raises:
            PaymentProviderError: If Stripe API call fails
        """
        try:
            logger.info(
                "creating_stripe_checkout_session",
                product_type=intent.product_type.value,
                mode=intent.mode.value,
                price_id=intent.price_id,
            )

            # The SDK call blocks; keep the event loop free
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode=intent.mode.value,
                line_items=[{"price": intent.price_id, "quantity": 1}],
                success_url=intent.success_url,
                cancel_url=intent.cancel_url,
                metadata={"code": intent.code, "type": intent.product_type.value},
            )

        except stripe.StripeError as exc:
            logger.error(
                "stripe_checkout_session_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PaymentProviderError(exc.user_message or str(exc)) from exc

        if not session.url:
            logger.error("stripe_checkout_session_missing_url", session_id=session.id)
            raise PaymentProviderError("Checkout session has no redirect URL")

        logger.info("stripe_checkout_session_created", session_id=session.id)

        return CheckoutSessionResult(session_id=session.id, url=session.url)

    async def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse Stripe webhook event.

        The signature is checked against the raw bytes before anything is parsed.

        Args:
            payload: Raw webhook payload
            signature: Stripe-Signature header value

        Returns:
            Parsed webhook event

        Raises:
            WebhookVerificationError: If signature verification fails or the body is malformed
        """
        logger.info("verifying_stripe_webhook", signature_present=bool(signature))

        try:
            payload_text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.error("stripe_webhook_payload_not_utf8")
            raise WebhookVerificationError("Payload is not valid UTF-8") from exc

        try:
            stripe.WebhookSignature.verify_header(
                payload_text,
                signature,
                self.webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except stripe.SignatureVerificationError as exc:
            logger.error("stripe_webhook_verification_failed", error=str(exc))
            raise WebhookVerificationError(exc.user_message or str(exc)) from exc

        try:
            event = json.loads(payload_text)
        except ValueError as exc:
            logger.error("stripe_webhook_parsing_failed", error=str(exc))
            raise WebhookVerificationError(f"Invalid JSON payload: {exc}") from exc

        if not isinstance(event, dict) or "type" not in event:
            raise WebhookVerificationError("Payload is not a Stripe event")

        data_object = _as_dict(_as_dict(event.get("data")).get("object"))
        metadata = _as_dict(data_object.get("metadata"))

        webhook_event = WebhookEvent(
            event_id=str(event.get("id", "")),
            event_type=str(event["type"]),
            object_id=data_object.get("id"),
            metadata_code=_as_str(metadata.get("code")),
            metadata_type=_as_str(metadata.get("type")),
        )

        logger.info(
            "stripe_webhook_verified",
            event_id=webhook_event.event_id,
            event_type=webhook_event.event_type,
        )

        return webhook_event


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str | None:
    # Stripe metadata values are strings; anything else is treated as absent
    return value if isinstance(value, str) and value else None
