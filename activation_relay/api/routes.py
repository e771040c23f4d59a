"""
API Routes - Checkout, Stripe webhook, and external event endpoints.

Only /stripe-webhook reads the raw body; the signature must be checked against
the exact bytes Stripe signed.
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from structlog import get_logger

from activation_relay.api.dependencies import get_relay_service
from activation_relay.exceptions import (
    BadRequestError,
    DownstreamForwardError,
    PaymentProviderError,
    WebhookVerificationError,
)
from activation_relay.models.api import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    ErrorResponse,
    ExternalEventBody,
    WebhookAck,
)
from activation_relay.services.relay import RelayService

logger = get_logger(__name__)
router = APIRouter(tags=["relay"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    request: Request,
    service: RelayService = Depends(get_relay_service),
) -> CheckoutSessionResponse | JSONResponse:
    """
    Create a Stripe Checkout session for an activation code.

    ``type`` selects the price and billing mode: monthly (subscription) or
    lifetime (one-time payment).
    """
    try:
        result = await service.create_checkout_session(
            code=body.code,
            product_type=body.product_type,
            fallback_base_url=str(request.base_url),
        )
    except BadRequestError as exc:
        logger.warning("checkout_request_rejected", reason=exc.message)
        return _error(status.HTTP_400_BAD_REQUEST, exc.message)
    except PaymentProviderError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    return CheckoutSessionResponse(url=result.url)


@router.post(
    "/stripe-webhook",
    response_model=WebhookAck,
    responses={400: {"content": {"text/plain": {}}}, 500: {"model": ErrorResponse}},
)
async def stripe_webhook(
    request: Request,
    service: RelayService = Depends(get_relay_service),
) -> WebhookAck | Response:
    """
    Handle Stripe webhook events.

    Verified events are always acknowledged, even when the activation forward
    to the game server fails.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        await service.handle_payment_webhook(payload, signature)
    except (BadRequestError, WebhookVerificationError) as exc:
        return PlainTextResponse(
            f"Webhook Error: {exc.message}", status_code=status.HTTP_400_BAD_REQUEST
        )
    except PaymentProviderError as exc:
        logger.error("stripe_webhook_not_configured", error=exc.message)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    return WebhookAck(received=True)


@router.post(
    "/webhook",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={400: {"content": {"text/plain": {}}}, 500: {"content": {"text/plain": {}}}},
)
async def external_event_webhook(
    code: str | None = Query(None, description="Activation code the event belongs to"),
    body: ExternalEventBody | None = None,
    service: RelayService = Depends(get_relay_service),
) -> Response:
    """
    Forward an external platform event to the game server.

    Event fields pass through unvalidated; the receiver checks the shared secret.
    """
    event_metrics = body.present_metrics() if body is not None else {}

    try:
        await service.handle_external_event(code, event_metrics)
    except BadRequestError as exc:
        logger.warning("external_event_rejected", reason=exc.message)
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)
    except DownstreamForwardError:
        return PlainTextResponse(
            "Failed to forward event", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return Response(status_code=status.HTTP_200_OK)
