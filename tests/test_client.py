"""Client facade and session issuance over HTTP (mocked transport)."""

import httpx
import pytest

from loglab.client import AsyncLogLab
from loglab.errors import ConnectionError, LogLabError, SessionError


def mock_transport(handler):
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_create_session_returns_id():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/session"
        return httpx.Response(200, json={"session_id": "abc-123"})

    client = AsyncLogLab(base_url="http://relay.test/", http_transport=mock_transport(handler))
    try:
        assert await client.create_session() == "abc-123"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_http_error_is_reported():
    client = AsyncLogLab(
        base_url="http://relay.test",
        http_transport=mock_transport(lambda request: httpx.Response(503, text="down")),
    )
    try:
        with pytest.raises(LogLabError) as exc:
            await client.create_session()
        assert exc.value.code == "http_error"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_unreachable_relay_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = AsyncLogLab(base_url="http://relay.test", http_transport=mock_transport(handler))
    try:
        with pytest.raises(LogLabError):
            await client.create_session()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_malformed_session_response():
    client = AsyncLogLab(
        base_url="http://relay.test",
        http_transport=mock_transport(lambda request: httpx.Response(200, json={"id": "x"})),
    )
    try:
        with pytest.raises(SessionError):
            await client.create_session()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_send_requires_connection():
    client = AsyncLogLab(base_url="http://relay.test")
    assert not client.connected
    assert client.session_id is None
    with pytest.raises(ConnectionError):
        await client.send_line("x")
    with pytest.raises(ConnectionError):
        await client.send_chat("me", "x")
    await client.close()
