"""Tests for outbound delivery providers.

HTTP calls are mocked with respx.
"""

import json

import httpx
import pytest
import respx

from finchat.config import NotificationConfig
from finchat.notifications.provider import (
    DevLoggerProvider,
    HttpGatewayProvider,
    get_delivery_provider,
)

GATEWAY_URL = "http://gateway.test/send"


@pytest.mark.asyncio
async def test_dev_logger_records_messages() -> None:
    provider = DevLoggerProvider()

    first = await provider.send_text("5511999998888", "olá")
    second = await provider.send_text("5511999998888", "tudo bem?")

    assert first == {"ok": True, "message": "Message logged (dev mode)", "delivery_id": "dev-1"}
    assert second["delivery_id"] == "dev-2"
    assert provider.sent[1] == ("5511999998888", "tudo bem?")


@pytest.mark.asyncio
async def test_gateway_success() -> None:
    provider = HttpGatewayProvider(GATEWAY_URL, token="tok")

    with respx.mock:
        route = respx.post(GATEWAY_URL).mock(
            return_value=httpx.Response(200, json={"id": "msg-1"})
        )
        result = await provider.send_text("5511999998888", "✅ feito")

        assert route.called
        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"to": "5511999998888", "text": "✅ feito"}

    assert result == {"ok": True, "message": "Message sent (status: 200)", "delivery_id": "msg-1"}


@pytest.mark.asyncio
async def test_gateway_without_body() -> None:
    provider = HttpGatewayProvider(GATEWAY_URL)

    with respx.mock:
        route = respx.post(GATEWAY_URL).mock(return_value=httpx.Response(204))
        result = await provider.send_text("5511999998888", "oi")

        assert "authorization" not in route.calls.last.request.headers

    assert result["ok"] is True
    assert result["delivery_id"] is None


@pytest.mark.asyncio
async def test_gateway_error_status() -> None:
    provider = HttpGatewayProvider(GATEWAY_URL)

    with respx.mock:
        respx.post(GATEWAY_URL).mock(return_value=httpx.Response(503, text="busy"))
        result = await provider.send_text("5511999998888", "oi")

    assert result["ok"] is False
    assert "503" in result["message"]
    assert "busy" in result["message"]


@pytest.mark.asyncio
async def test_gateway_connection_error() -> None:
    provider = HttpGatewayProvider(GATEWAY_URL)

    with respx.mock:
        respx.post(GATEWAY_URL).mock(side_effect=httpx.ConnectError("refused"))
        result = await provider.send_text("5511999998888", "oi")

    assert result["ok"] is False
    assert result["delivery_id"] is None


class TestFactory:
    def test_default_is_dev(self) -> None:
        assert isinstance(get_delivery_provider(NotificationConfig()), DevLoggerProvider)

    def test_gateway(self) -> None:
        provider = get_delivery_provider(
            NotificationConfig(delivery_provider="gateway", gateway_url=GATEWAY_URL,
                               gateway_token="tok")
        )
        assert isinstance(provider, HttpGatewayProvider)
        assert provider.token == "tok"

    def test_gateway_without_url(self) -> None:
        provider = get_delivery_provider(NotificationConfig(delivery_provider="gateway"))
        assert isinstance(provider, DevLoggerProvider)

    def test_unknown_name(self) -> None:
        provider = get_delivery_provider(NotificationConfig(delivery_provider="carrier-pigeon"))
        assert isinstance(provider, DevLoggerProvider)
