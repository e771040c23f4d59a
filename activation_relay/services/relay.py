"""
Relay Service - Checkout creation, webhook verification, and event forwarding.

Stateless: every call works only from its arguments, the injected settings,
the payment provider and the forwarder.
"""

from typing import Any

from structlog import get_logger

from activation_relay.config import Settings
from activation_relay.exceptions import (
    BadRequestError,
    DownstreamForwardError,
    PaymentProviderError,
    ProviderNotConfiguredError,
    WebhookVerificationError,
)
from activation_relay.models.api import ActivationAction, ProductType
from activation_relay.models.domain import (
    ActivationCommand,
    CheckoutSessionIntent,
    CheckoutSessionResult,
    ExternalEventCommand,
    WebhookEvent,
)
from activation_relay.observability.metrics import metrics
from activation_relay.services.forwarder import GameServerForwarder
from activation_relay.services.payment_provider import PaymentProvider

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


class RelayService:
    """Request-scoped entry point for all relay operations."""

    def __init__(
        self,
        settings: Settings,
        forwarder: GameServerForwarder,
        provider: PaymentProvider | None,
    ) -> None:
        self.settings = settings
        self.forwarder = forwarder
        self.provider = provider

    # ========================================================================
    # Checkout
    # ========================================================================

    async def create_checkout_session(
        self,
        code: str | None,
        product_type: str | None,
        fallback_base_url: str,
    ) -> CheckoutSessionResult:
        """
        Create a hosted checkout session for an activation code.

        Input is validated before the provider is touched.

        Raises:
            BadRequestError: code or type missing, or type not recognized
            ProviderNotConfiguredError: Stripe key or price id missing
            PaymentProviderError: Stripe rejected the request
        """
        if not code or not product_type:
            metrics.record_checkout("missing", "bad_request")
            raise BadRequestError("Missing code or type")

        try:
            resolved_type = ProductType(product_type)
        except ValueError as exc:
            metrics.record_checkout("invalid", "bad_request")
            raise BadRequestError(
                f"Invalid type: must be one of {', '.join(t.value for t in ProductType)}"
            ) from exc

        price = self.settings.price_for(resolved_type)
        if self.provider is None or not self.settings.stripe_configured:
            metrics.record_checkout(resolved_type.value, "not_configured")
            raise ProviderNotConfiguredError("STRIPE_SECRET_KEY")
        if not price.price_id:
            metrics.record_checkout(resolved_type.value, "not_configured")
            raise ProviderNotConfiguredError(f"STRIPE_PRICE_{resolved_type.value.upper()}")

        base = self.settings.redirect_base(fallback_base_url)
        intent = CheckoutSessionIntent(
            code=code,
            product_type=resolved_type,
            price_id=price.price_id,
            mode=price.mode,
            success_url=f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/cancel",
        )

        try:
            result = await self.provider.create_checkout_session(intent)
        except PaymentProviderError:
            metrics.record_checkout(resolved_type.value, "provider_error")
            raise

        metrics.record_checkout(resolved_type.value, "created")
        logger.info(
            "checkout_session_created",
            session_id=result.session_id,
            product_type=resolved_type.value,
            code=code,
        )
        return result

    # ========================================================================
    # Stripe Webhook
    # ========================================================================

    async def handle_payment_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        """
        Verify a Stripe event and forward activations for completed checkouts.

        A failed forward is logged and swallowed: Stripe is acknowledged either
        way and nothing retries the forward. Duplicate deliveries forward again.

        Raises:
            ProviderNotConfiguredError: Stripe key or webhook secret missing
            BadRequestError: signature header missing
            WebhookVerificationError: signature or payload invalid
        """
        if self.provider is None or not self.settings.stripe_configured:
            raise ProviderNotConfiguredError("STRIPE_SECRET_KEY")
        if not self.settings.webhook_configured:
            raise ProviderNotConfiguredError("STRIPE_WEBHOOK_SECRET")
        if not signature:
            metrics.record_webhook("unknown", "missing_signature")
            raise BadRequestError("Missing stripe-signature header")

        try:
            event = await self.provider.verify_webhook(payload, signature)
        except WebhookVerificationError:
            metrics.record_webhook("unknown", "invalid_signature")
            raise

        logger.info(
            "stripe_webhook_received",
            event_id=event.event_id,
            event_type=event.event_type,
            object_id=event.object_id,
        )

        if event.event_type != CHECKOUT_COMPLETED:
            metrics.record_webhook(event.event_type, "ignored")
            logger.info("stripe_webhook_ignored", event_id=event.event_id, event_type=event.event_type)
            return event

        if not event.metadata_code:
            metrics.record_webhook(event.event_type, "no_code")
            logger.info("checkout_completed_without_code", event_id=event.event_id)
            return event

        if event.metadata_type not in [t.value for t in ProductType]:
            logger.warning(
                "checkout_completed_unrecognized_type",
                event_id=event.event_id,
                metadata_type=event.metadata_type,
                defaulted_to=ActivationAction.ACTIVATE_SUB.value,
            )

        command = ActivationCommand(
            secret=self.settings.fivem_http_secret,
            action=ActivationAction.for_product_type(event.metadata_type),
            code=event.metadata_code,
        )

        try:
            await self.forwarder.send_activation(command)
        except DownstreamForwardError as exc:
            metrics.record_webhook(event.event_type, "forward_failed")
            logger.error(
                "activation_forward_dropped",
                event_id=event.event_id,
                code=command.code,
                action=command.action.value,
                error=str(exc),
            )
            return event

        metrics.record_webhook(event.event_type, "forwarded")
        logger.info(
            "activation_forwarded",
            event_id=event.event_id,
            code=command.code,
            action=command.action.value,
        )
        return event

    # ========================================================================
    # External Events
    # ========================================================================

    async def handle_external_event(self, code: str | None, event_metrics: dict[str, Any]) -> None:
        """
        Forward an external platform event with the shared secret attached.

        Raises:
            BadRequestError: code missing or empty
            DownstreamForwardError: receiver unreachable or rejected the forward
        """
        if not code:
            raise BadRequestError("Missing code")

        command = ExternalEventCommand(
            secret=self.settings.fivem_http_secret,
            code=code,
            metrics=event_metrics,
        )
        await self.forwarder.send_event(command)
