"""
Tests for GameServerForwarder.
"""

import json

import httpx
import pytest

from activation_relay.exceptions import DownstreamForwardError
from activation_relay.models.api import ActivationAction
from activation_relay.models.domain import ActivationCommand, ExternalEventCommand
from activation_relay.services.forwarder import GameServerForwarder
from conftest import DOWNSTREAM_URL


@pytest.fixture
def forwarder(http_client: httpx.AsyncClient) -> GameServerForwarder:
    return GameServerForwarder(client=http_client, url=DOWNSTREAM_URL)


class TestSendActivation:
    """Tests for activation forwards."""

    @pytest.mark.asyncio
    async def test_posts_json(self, forwarder, downstream):
        command = ActivationCommand(
            secret="s3cret", action=ActivationAction.ACTIVATE_SUB, code="ABC"
        )

        await forwarder.send_activation(command)

        assert downstream.call_count == 1
        request = downstream.requests[0]
        assert request.method == "POST"
        assert str(request.url) == DOWNSTREAM_URL
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "secret": "s3cret",
            "action": "activate_sub",
            "code": "ABC",
        }

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self, forwarder, downstream):
        downstream.status_code = 403
        command = ActivationCommand(
            secret="s3cret", action=ActivationAction.ACTIVATE_SUB, code="ABC"
        )

        with pytest.raises(DownstreamForwardError) as exc_info:
            await forwarder.send_activation(command)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_network_error_raises(self, forwarder, downstream):
        downstream.connect_error = True
        command = ActivationCommand(
            secret="s3cret", action=ActivationAction.ACTIVATE_LIFETIME, code="ABC"
        )

        with pytest.raises(DownstreamForwardError) as exc_info:
            await forwarder.send_activation(command)

        assert exc_info.value.status_code is None
        assert "Connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        forwarder = GameServerForwarder(client=client, url=DOWNSTREAM_URL)

        with pytest.raises(DownstreamForwardError, match="timed out"):
            await forwarder.send_activation(
                ActivationCommand(secret="s", action=ActivationAction.ACTIVATE_SUB, code="ABC")
            )


class TestSendEvent:
    """Tests for external event forwards."""

    @pytest.mark.asyncio
    async def test_posts_metrics_verbatim(self, forwarder, downstream):
        command = ExternalEventCommand(
            secret="s3cret",
            code="ABC",
            metrics={"event": "ride", "amount": 5, "distance": 12.4, "duration": None},
        )

        await forwarder.send_event(command)

        assert downstream.payloads == [
            {
                "secret": "s3cret",
                "code": "ABC",
                "event": "ride",
                "amount": 5,
                "distance": 12.4,
                "duration": None,
            }
        ]

    @pytest.mark.asyncio
    async def test_server_error_raises(self, forwarder, downstream):
        downstream.status_code = 500
        with pytest.raises(DownstreamForwardError):
            await forwarder.send_event(ExternalEventCommand(secret="s", code="ABC"))
