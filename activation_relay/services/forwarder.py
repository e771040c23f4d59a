"""
Game Server Forwarder - POSTs relay commands to the FiveM HTTP receiver.

One shared ``httpx.AsyncClient`` is reused for every forward. There is no
retry; a failed forward raises DownstreamForwardError and the caller decides
whether the inbound request sees it.
"""

import time
from typing import Any

import httpx
from structlog import get_logger

from activation_relay.exceptions import DownstreamForwardError
from activation_relay.models.domain import ActivationCommand, ExternalEventCommand
from activation_relay.observability.metrics import metrics
from activation_relay.observability.tracing import add_span_attributes, get_tracer, set_span_error

logger = get_logger(__name__)
tracer = get_tracer(__name__)


class GameServerForwarder:
    """Sends activation and event commands to the game-server receiver."""

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self.client = client
        self.url = url

    async def send_activation(self, command: ActivationCommand) -> None:
        """Forward a payment-originated activation."""
        await self._post(
            "activation",
            command.to_payload(),
            code=command.code,
            action=command.action.value,
        )

    async def send_event(self, command: ExternalEventCommand) -> None:
        """Forward an external platform event."""
        await self._post(
            "external_event",
            command.to_payload(),
            code=command.code,
            event_name=command.metrics.get("event"),
        )

    async def _post(self, kind: str, payload: dict[str, Any], **log_fields: Any) -> None:
        start = time.perf_counter()

        with tracer.start_as_current_span("downstream_forward") as span:
            add_span_attributes(span, forward_kind=kind, **log_fields)
            try:
                response = await self.client.post(self.url, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                error = DownstreamForwardError(f"receiver responded {status_code}", status_code)
                self._record_failure(kind, start, error, span, **log_fields)
                raise error from exc
            except httpx.HTTPError as exc:
                error = DownstreamForwardError(str(exc) or type(exc).__name__)
                self._record_failure(kind, start, error, span, **log_fields)
                raise error from exc

        duration = time.perf_counter() - start
        metrics.record_forward(kind, success=True, duration=duration)
        logger.info(
            "downstream_forward_succeeded",
            kind=kind,
            status_code=response.status_code,
            duration_seconds=duration,
            **log_fields,
        )

    def _record_failure(
        self,
        kind: str,
        start: float,
        error: DownstreamForwardError,
        span: Any,
        **log_fields: Any,
    ) -> None:
        duration = time.perf_counter() - start
        set_span_error(span, error)
        metrics.record_forward(kind, success=False, duration=duration)
        metrics.record_error(type(error).__name__, kind)
        logger.error(
            "downstream_forward_failed",
            kind=kind,
            error=error.message,
            status_code=error.status_code,
            duration_seconds=duration,
            **log_fields,
        )
