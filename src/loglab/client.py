"""
AsyncLogLab — client for a LogLab relay.
"""

import asyncio
import logging
from typing import Any, AsyncGenerator, Optional, Union

from loglab.broadcast import Subscription, Topic
from loglab.config import DEFAULT_BASE_URL, SOCKETIO_PATH
from loglab.errors import ConnectionError
from loglab.models.chat import ChatMessage, PipeFrame
from loglab.producer import Producer
from loglab.sessions import SessionsAPI
from loglab.source import TextSource
from loglab.transport.frames import decode_frame, encode_chat
from loglab.transport.http import HttpClient
from loglab.transport.socketio import SocketIOManager

logger = logging.getLogger(__name__)

Frame = Union[PipeFrame, ChatMessage]


class AsyncLogLab:
    """Async LogLab client: issue a session, connect to it, send and receive frames."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        socketio_path: str = SOCKETIO_PATH,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 15.0,
        send_timeout: float = 60.0,
        inbox_size: int = 1000,
        http_transport: Any = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._socketio_path = socketio_path
        self._transports = transports
        self._connect_timeout = connect_timeout
        self._send_timeout = send_timeout
        self._inbox_size = inbox_size

        self.http = HttpClient(base_url=self._base_url, transport=http_transport)
        self.sessions = SessionsAPI(self.http)

        self._sio: Optional[SocketIOManager] = None
        self._inbox: Optional[Subscription[str]] = None

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    @property
    def session_id(self) -> Optional[str]:
        return self._sio.session_id if self._sio else None

    async def create_session(self) -> str:
        return await self.sessions.create()

    async def connect(self, session_id: Optional[str] = None) -> str:
        """Connect to a session, issuing a new one first if none is given. Returns the session id."""
        sid = session_id or await self.create_session()
        sio = SocketIOManager(
            base_url=self._base_url,
            session_id=sid,
            socketio_path=self._socketio_path,
            transports=self._transports,
            connect_timeout=self._connect_timeout,
            send_timeout=self._send_timeout,
        )
        inbox: Topic[str] = Topic(f"{sid}/inbox", self._inbox_size)
        self._inbox = inbox.subscribe()
        sio.add_frame_handler(inbox.publish)
        await sio.connect()
        self._sio = sio
        return sid

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None

    async def close(self) -> None:
        await self.disconnect()
        await self.http.close()

    async def send_line(self, text: str) -> None:
        """Send one pipe line, verbatim."""
        await self._ensure_connected().send(text)

    async def send_chat(self, sender: str, content: str) -> ChatMessage:
        """Send a chat message stamped with the local clock."""
        message = ChatMessage.now(sender, content)
        await self._ensure_connected().send(encode_chat(message))
        return message

    async def stream(self, source: TextSource) -> int:
        """Forward every line of a source to the session. Returns the line count."""
        producer = Producer(source, self._ensure_connected().send)
        return await producer.run()

    async def frames(self) -> AsyncGenerator[Frame, None]:
        """Yield decoded frames from the relay until the connection closes.

        Frames are buffered from connect() on, so nothing sent in between is missed.
        """
        sio = self._ensure_connected()
        inbox = self._inbox
        assert inbox is not None
        while sio.connected or inbox.pending():
            try:
                raw = await asyncio.wait_for(inbox.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            frame = decode_frame(raw)
            if frame is None:
                logger.debug(f"Skipping unrecognised frame: {raw[:80]}")
                continue
            yield frame

    def _ensure_connected(self) -> SocketIOManager:
        if not self._sio or not self._sio.connected:
            raise ConnectionError("Not connected. Call connect() first.")
        return self._sio
