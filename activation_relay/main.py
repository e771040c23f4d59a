"""
Main Application - FastAPI application factory.
"""

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from activation_relay.api.health_routes import router as health_router
from activation_relay.api.routes import router
from activation_relay.config import Settings, get_settings
from activation_relay.exceptions import BadRequestError, RelayError, WebhookVerificationError
from activation_relay.observability import (
    get_logger,
    instrument_fastapi,
    log_context,
    metrics,
    setup_logging,
    setup_tracing,
)
from activation_relay.services.payment_provider import PaymentProvider
from activation_relay.services.stripe_provider import StripeProvider

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Opens the shared downstream HTTP client unless one was injected.
    """
    settings: Settings = app.state.settings
    owns_client = app.state.http_client is None
    if owns_client:
        app.state.http_client = httpx.AsyncClient(timeout=settings.fivem_http_timeout)

    logger.info(
        "application_starting",
        service=settings.api_title,
        version=settings.api_version,
        port=settings.port,
        stripe_configured=settings.stripe_configured,
        webhook_configured=settings.webhook_configured,
        tracing_enabled=settings.tracing_enabled,
        metrics_enabled=settings.metrics_enabled,
    )

    yield

    logger.info("application_shutting_down")
    if owns_client:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("http_client_closed")


UNMATCHED_ENDPOINT = "unmatched"


def _endpoint_label(request: Request) -> str:
    """Route template for metrics; unmatched paths share one label."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


async def logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log all HTTP requests with timing."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    path = request.url.path
    method = request.method

    with log_context(request_id=request_id):
        logger.info("request_started", method=method, path=path)
        metrics.http_requests_in_progress.labels(method=method).inc()

        try:
            response = await call_next(request)
            duration = time.time() - start_time
            metrics.record_http_request(
                _endpoint_label(request), method, response.status_code, duration
            )

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_seconds=duration,
            )

            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            duration = time.time() - start_time
            metrics.record_http_request(_endpoint_label(request), method, 500, duration)
            metrics.record_error(type(e).__name__, "http_request")

            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration_seconds=duration,
                exc_info=True,
            )
            raise
        finally:
            metrics.http_requests_in_progress.labels(method=method).dec()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON bodies are caller errors: 400 with the details."""
    sanitized_errors = []
    for error in exc.errors():
        sanitized = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            sanitized["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        sanitized_errors.append(sanitized)

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        errors=sanitized_errors,
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "detail": sanitized_errors},
    )


async def relay_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for relay errors a route did not translate itself.

    Routes map the errors their service raises; this only keeps an unexpected
    one from surfacing as a bare 500 without the `{error}` body.
    """
    if isinstance(exc, (BadRequestError, WebhookVerificationError)):
        status_code = 400
    else:
        status_code = 500
    message = getattr(exc, "message", str(exc))

    logger.error(
        "relay_error_unhandled",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    payment_provider: PaymentProvider | None = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Configuration snapshot; loaded from the environment when omitted
        http_client: Downstream client; created by the lifespan when omitted
        payment_provider: Provider override; Stripe is used when its key is configured

    Raises:
        ConfigurationError: If critical configuration is missing
    """
    settings = settings or get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    if payment_provider is None and settings.stripe_configured:
        payment_provider = StripeProvider(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
        )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.payment_provider = payment_provider

    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RelayError, relay_exception_handler)

    instrument_fastapi(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(logging_middleware)

    app.include_router(health_router)
    app.include_router(router)

    if settings.metrics_enabled:

        @app.get("/metrics", include_in_schema=False)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics in text format."""
            return PlainTextResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "activation_relay.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    run()
