"""
Socket.IO connection manager for one session.

Connection: {base_url}/{socketio_path} on namespace /ws/{session_id}.
Text frames travel as `message` events with a str payload. Every frame is
acknowledged by the receiving side; send() returns only once the relay has
taken the frame, so a stalled relay stalls the sender.
"""

import logging
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SioConnectionError, SocketIOError, TimeoutError as SioTimeoutError

from loglab.config import SOCKETIO_PATH
from loglab.errors import ConnectionError

logger = logging.getLogger(__name__)

FrameHandler = Callable[[str], None]


class SocketIOManager:
    def __init__(
        self,
        base_url: str,
        session_id: str,
        socketio_path: str = SOCKETIO_PATH,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 15.0,
        send_timeout: float = 60.0,
    ):
        self._base_url = base_url
        self._session_id = session_id
        self._socketio_path = socketio_path
        self._transports = transports or ["websocket"]
        self._connect_timeout = connect_timeout
        self._send_timeout = send_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._connected = False
        self._frame_handlers: list[FrameHandler] = []

    @property
    def namespace(self) -> str:
        return f"/ws/{self._session_id}"

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def connected(self) -> bool:
        return self._connected and self._sio is not None and self._sio.connected

    def add_frame_handler(self, handler: FrameHandler) -> Callable[[], None]:
        """Add a handler for inbound text frames. Returns a cleanup function."""
        self._frame_handlers.append(handler)
        def remove() -> None:
            try:
                self._frame_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    async def connect(self) -> None:
        """Open the connection; fails if the relay refuses the session."""
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient(reconnection=False)
        namespace = self.namespace

        @self._sio.on("message", namespace=namespace)
        async def on_message(data: Any) -> bool:
            if not isinstance(data, str):
                return False
            for handler in list(self._frame_handlers):
                handler(data)
            return True

        @self._sio.on("disconnect", namespace=namespace)
        async def on_disconnect(*_args: Any) -> None:
            self._connected = False

        try:
            await self._sio.connect(
                self._base_url,
                namespaces=[namespace],
                transports=self._transports,
                socketio_path=self._socketio_path,
                wait_timeout=self._connect_timeout,
            )
        except SioConnectionError as e:
            self._sio = None
            raise ConnectionError(f"Failed to connect to session {self._session_id}: {e}")
        self._connected = True
        logger.info(f"Connected to {self._base_url} on {namespace}")

    async def send(self, text: str) -> None:
        """Send one text frame and wait for the relay to acknowledge it.

        Raises ConnectionError if the connection is gone or no ack arrives within send_timeout.
        """
        if not self.connected:
            raise ConnectionError("Socket.IO not connected")
        try:
            await self._sio.call(  # type: ignore[union-attr]
                "message", text, namespace=self.namespace, timeout=self._send_timeout
            )
        except SioTimeoutError:
            raise ConnectionError(f"Relay did not acknowledge frame within {self._send_timeout}s")
        except SocketIOError as e:
            self._connected = False
            raise ConnectionError(f"Failed to send message: {e}")

    async def wait_closed(self) -> None:
        """Block until the relay closes the connection."""
        if self._sio:
            await self._sio.wait()

    async def disconnect(self) -> None:
        self._connected = False
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
