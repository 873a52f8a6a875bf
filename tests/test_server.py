"""Relay server HTTP surface, namespace routing and connection handling."""

import asyncio
import logging

import pytest
from aiohttp.test_utils import TestClient, TestServer
from socketio.exceptions import ConnectionRefusedError

from loglab.config import RelayConfig
from loglab.server import AckedSender, RelayServer, session_id_from_namespace, session_namespace


class SilentPeer:
    """Stands in for AsyncServer.emit; records frames and never acks them."""

    def __init__(self):
        self.frames: list[tuple[str, str]] = []
        self.callbacks = []

    async def emit(self, event, data=None, to=None, namespace=None, callback=None):
        self.frames.append((to, data))
        self.callbacks.append(callback)

    def sent_to(self, sid: str) -> list[str]:
        return [data for to, data in self.frames if to == sid]


def test_namespace_round_trip():
    assert session_namespace("abc") == "/ws/abc"
    assert session_id_from_namespace("/ws/abc") == "abc"


def test_bad_namespaces_have_no_session():
    for ns in ["/", "/ws/", "/ws", "/other/abc", "/ws/a/b"]:
        assert session_id_from_namespace(ns) is None, ns


@pytest.mark.asyncio
async def test_issue_session_over_http():
    server = RelayServer()
    async with TestClient(TestServer(server.app)) as client:
        resp = await client.get("/api/session")
        assert resp.status == 200
        body = await resp.json()
        assert server.registry.lookup(body["session_id"]) is not None
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

        resp = await client.get("/api/health")
        assert await resp.json() == {"status": "ok", "sessions": 1}


@pytest.mark.asyncio
async def test_each_request_issues_a_new_session():
    server = RelayServer(RelayConfig(capacity=5))
    async with TestClient(TestServer(server.app)) as client:
        ids = set()
        for _ in range(3):
            resp = await client.get("/api/session")
            ids.add((await resp.json())["session_id"])
        assert len(ids) == 3
        session = server.registry.lookup(ids.pop())
        assert session.pipe.capacity == 5


def test_config_validation():
    with pytest.raises(ValueError):
        RelayConfig(capacity=0)
    with pytest.raises(ValueError):
        RelayConfig(teardown="never")


def test_send_window_validation():
    with pytest.raises(ValueError):
        RelayConfig(send_window=0)


@pytest.mark.asyncio
async def test_acked_sender_waits_for_a_free_slot():
    peer = SilentPeer()
    send = AckedSender(peer, "sid1", "/ws/s", window=2)
    await send("a")
    await send("b")
    third = asyncio.create_task(send("c"))
    await asyncio.sleep(0.05)
    assert not third.done()
    assert send.in_flight == 2

    peer.callbacks[0](True)
    await asyncio.wait_for(third, timeout=1)
    assert peer.sent_to("sid1") == ["a", "b", "c"]
    assert send.in_flight == 2


@pytest.mark.asyncio
async def test_unacked_viewer_keeps_buffer_bounded():
    server = RelayServer(RelayConfig(capacity=10, send_window=2))
    peer = SilentPeer()
    server.sio.emit = peer.emit
    sid = server.registry.create()
    ns = session_namespace(sid)
    await server._on_connect(ns, "viewer", {})
    await server._on_connect(ns, "producer", {})

    for i in range(500):
        assert await server._on_message(ns, "producer", f"{i:04d}" + "x" * 4096) is True
        await asyncio.sleep(0)

    stats = server._handlers[(ns, "viewer")].stats()["pipe"]
    assert len(peer.sent_to("viewer")) == 2
    assert stats["pending"] <= 10
    assert stats["dropped"] >= 488
    await server.stop()


@pytest.mark.asyncio
async def test_connect_refuses_unknown_endpoint_and_session():
    server = RelayServer()
    with pytest.raises(ConnectionRefusedError):
        await server._on_connect("/other", "sid1", {})
    with pytest.raises(ConnectionRefusedError):
        await server._on_connect(session_namespace("fabricated"), "sid1", {})
    assert server.connection_count == 0
    assert len(server.registry) == 0


@pytest.mark.asyncio
async def test_message_from_unknown_connection_is_not_acked():
    server = RelayServer()
    assert await server._on_message("/ws/abc", "sid1", "hello") is False


@pytest.mark.asyncio
async def test_lost_connection_logs_error(caplog):
    server = RelayServer(RelayConfig(teardown="last"))
    server.sio.emit = SilentPeer().emit
    sid = server.registry.create()
    ns = session_namespace(sid)
    await server._on_connect(ns, "a", {})
    await server._on_connect(ns, "b", {})

    with caplog.at_level(logging.INFO, logger="loglab.server"):
        await server._on_disconnect(ns, "a", "transport error")
        await server._on_disconnect(ns, "b", "client disconnect")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "transport error" in errors[0].getMessage()
    assert any(r.levelno == logging.INFO and "closed (client disconnect)" in r.getMessage()
               for r in caplog.records)
    assert server.connection_count == 0
    assert server.registry.lookup(sid) is None
