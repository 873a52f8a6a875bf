"""
Relay server — Socket.IO over aiohttp.

Endpoints:
  GET  /api/session        issue a new session id
  GET  /api/health         liveness + open session count
  Socket.IO namespace /ws/{session_id}
      text frames in either direction are `message` events with a str payload,
      each acknowledged by the receiver
"""

import asyncio
import logging
from typing import Any, Optional

import socketio
from aiohttp import web
from socketio.exceptions import ConnectionRefusedError as Refused

from loglab.config import RelayConfig
from loglab.errors import SessionError
from loglab.handler import ConnectionHandler
from loglab.models.session import HealthResponse, SessionResponse
from loglab.registry import SessionRegistry

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "/ws/"

# Disconnect reasons that are an orderly close by either side; anything else
# (ping timeout, transport close or error) is a lost connection.
CLEAN_DISCONNECTS = (None, "client disconnect", "server disconnect")

ConnectionKey = tuple[str, str]


class AckedSender:
    """Emits text frames to one connection with at most `window` of them unacknowledged.

    A send waits for a free slot, so a peer that stops acking stalls the
    caller instead of growing the transport's outgoing queue.
    """

    def __init__(self, sio: socketio.AsyncServer, sid: str, namespace: str, window: int = 8):
        if window < 1:
            raise ValueError("window must be at least 1")
        self._sio = sio
        self._sid = sid
        self._namespace = namespace
        self._slots = asyncio.Semaphore(window)
        self.in_flight = 0

    async def __call__(self, text: str) -> None:
        await self._slots.acquire()
        self.in_flight += 1
        try:
            await self._sio.emit("message", text, to=self._sid, namespace=self._namespace, callback=self._acked)
        except BaseException:
            self._acked()
            raise

    def _acked(self, *_data: Any) -> None:
        self.in_flight -= 1
        self._slots.release()


def session_namespace(session_id: str) -> str:
    return f"{NAMESPACE_PREFIX}{session_id}"


def session_id_from_namespace(namespace: str) -> Optional[str]:
    if not namespace.startswith(NAMESPACE_PREFIX):
        return None
    session_id = namespace[len(NAMESPACE_PREFIX):]
    if not session_id or "/" in session_id:
        return None
    return session_id


class RelayServer:
    """Accepts connections per session and fans their frames out to each other."""

    def __init__(self, config: Optional[RelayConfig] = None, registry: Optional[SessionRegistry] = None):
        self.config = config or RelayConfig()
        self.registry = registry or SessionRegistry(capacity=self.config.capacity)
        self.sio = socketio.AsyncServer(
            async_mode="aiohttp",
            namespaces="*",
            cors_allowed_origins=self.config.cors_origins,
            logger=False,
            engineio_logger=False,
        )
        self.app = web.Application(middlewares=[self._cors_middleware])
        self.app.router.add_get("/api/session", self._create_session)
        self.app.router.add_get("/api/health", self._health)
        self.sio.attach(self.app, socketio_path=self.config.socketio_path)

        self._handlers: dict[ConnectionKey, ConnectionHandler] = {}
        self._pumps: dict[ConnectionKey, asyncio.Task[None]] = {}
        self._runner: Optional[web.AppRunner] = None
        self.port: Optional[int] = None

        self._setup_handlers()

    def _setup_handlers(self) -> None:
        self.sio.on("connect", self._on_connect, namespace="*")
        self.sio.on("message", self._on_message, namespace="*")
        self.sio.on("disconnect", self._on_disconnect, namespace="*")

    async def _on_connect(self, namespace: str, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        session_id = session_id_from_namespace(namespace)
        if session_id is None:
            logger.warning(f"Rejected connection to unknown endpoint {namespace}")
            raise Refused("unknown endpoint")

        send = AckedSender(self.sio, sid, namespace, window=self.config.send_window)
        handler = ConnectionHandler(self.registry, session_id, send, teardown=self.config.teardown)
        try:
            handler.attach()
        except SessionError as e:
            raise Refused(str(e))

        key = (namespace, sid)
        self._handlers[key] = handler
        self._pumps[key] = asyncio.create_task(self._pump(key, handler))

    async def _on_message(self, namespace: str, sid: str, data: Any) -> bool:
        # the return value is the ack the sender waits for
        handler = self._handlers.get((namespace, sid))
        if handler is None:
            return False
        if not isinstance(data, str):
            logger.debug(f"Ignoring non-text frame on {namespace}")
            return False
        handler.ingest(data)
        return True

    async def _on_disconnect(self, namespace: str, sid: str, reason: Any = None) -> None:
        if (namespace, sid) in self._handlers:
            if reason in CLEAN_DISCONNECTS:
                logger.info(f"Connection {sid} on {namespace} closed ({reason or 'client disconnect'})")
            else:
                logger.error(f"Connection {sid} on {namespace} lost: {reason}")
        self._drop((namespace, sid))

    async def _pump(self, key: ConnectionKey, handler: ConnectionHandler) -> None:
        await handler.pump()
        # pump only returns on a failed send; the peer is gone
        namespace, sid = key
        self._drop(key)
        await self.sio.disconnect(sid, namespace=namespace)

    def _drop(self, key: ConnectionKey) -> None:
        handler = self._handlers.pop(key, None)
        task = self._pumps.pop(key, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        if handler is not None:
            handler.close()

    @property
    def connection_count(self) -> int:
        return len(self._handlers)

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        response = await handler(request)
        if request.path.startswith("/api/"):
            response.headers["Access-Control-Allow-Origin"] = self.config.cors_origins
        return response

    async def _create_session(self, request: web.Request) -> web.Response:
        session_id = self.registry.create()
        return web.json_response(SessionResponse(session_id=session_id).model_dump())

    async def _health(self, request: web.Request) -> web.Response:
        return web.json_response(HealthResponse(sessions=len(self.registry)).model_dump())

    async def start(self) -> None:
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.host, self.config.port)
        await site.start()
        self._runner = runner
        self.port = runner.addresses[0][1] if runner.addresses else self.config.port
        logger.info(f"Relay listening on http://{self.config.host}:{self.port}")

    async def stop(self) -> None:
        for key in list(self._handlers):
            self._drop(key)
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Relay stopped")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()
