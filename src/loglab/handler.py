"""
Per-connection relay: binds one connection to one session.

Ingress: every inbound text frame is published to the session's chat topic
if it parses as a chat message, otherwise to its pipe topic, verbatim.

Egress: the connection's two subscriptions are raced against each other and
whichever yields first is sent. No fairness between pipe and chat is
promised; each topic keeps its own order.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from loglab.broadcast import Subscription
from loglab.errors import SessionError
from loglab.models.chat import ChatMessage
from loglab.registry import Session, SessionRegistry
from loglab.transport.frames import encode_chat, encode_pipe, parse_chat

logger = logging.getLogger(__name__)

TEARDOWN_CONNECTION = "connection"
TEARDOWN_LAST = "last"
TEARDOWN_POLICIES = (TEARDOWN_CONNECTION, TEARDOWN_LAST)

SendFn = Callable[[str], Awaitable[None]]


class ConnectionHandler:
    def __init__(
        self,
        registry: SessionRegistry,
        session_id: str,
        send: SendFn,
        teardown: str = TEARDOWN_CONNECTION,
    ):
        if teardown not in TEARDOWN_POLICIES:
            raise ValueError(f"Unknown teardown policy: {teardown!r}")
        self._registry = registry
        self.session_id = session_id
        self._send = send
        self._teardown = teardown
        self._session: Optional[Session] = None
        self._pipe_rx: Optional[Subscription[str]] = None
        self._chat_rx: Optional[Subscription[ChatMessage]] = None
        self._closed = False

    @property
    def attached(self) -> bool:
        return self._session is not None and not self._closed

    def attach(self) -> None:
        """Resolve the session and subscribe to both topics.

        Raises SessionError for unknown ids; nothing is subscribed in that case.
        """
        try:
            session = self._registry.attach(self.session_id)
        except SessionError:
            logger.warning(f"Invalid session ID: {self.session_id}")
            raise
        self._session = session
        self._pipe_rx = session.pipe.subscribe()
        self._chat_rx = session.chat.subscribe()
        logger.info(f"Connection attached to session {self.session_id} ({session.connections} attached)")

    def ingest(self, payload: str) -> None:
        """Publish one inbound frame to the matching topic of the session."""
        session = self._require_session()
        message = parse_chat(payload)
        if message is not None:
            session.chat.publish(message)
            return
        logger.debug(f"[Session {self.session_id}] Received pipe data: {payload}")
        session.pipe.publish(payload)

    async def pump(self) -> None:
        """Forward both subscriptions to the connection until a send fails or the task is cancelled."""
        self._require_session()
        pipe_rx, chat_rx = self._pipe_rx, self._chat_rx
        assert pipe_rx is not None and chat_rx is not None
        pipe_get = asyncio.ensure_future(pipe_rx.get())
        chat_get = asyncio.ensure_future(chat_rx.get())
        try:
            while True:
                done, _ = await asyncio.wait({pipe_get, chat_get}, return_when=asyncio.FIRST_COMPLETED)
                if pipe_get in done:
                    text = pipe_get.result()
                    pipe_get = asyncio.ensure_future(pipe_rx.get())
                    await self._send(encode_pipe(text))
                if chat_get in done:
                    message = chat_get.result()
                    chat_get = asyncio.ensure_future(chat_rx.get())
                    await self._send(encode_chat(message))
        except Exception as e:
            logger.error(f"Send failed on session {self.session_id}: {e}")
        finally:
            pipe_get.cancel()
            chat_get.cancel()

    def stats(self) -> dict[str, dict[str, int]]:
        """Buffered and dropped frame counts of this connection, per topic."""
        return {
            name: {"pending": rx.pending(), "dropped": rx.dropped}
            for name, rx in (("pipe", self._pipe_rx), ("chat", self._chat_rx))
            if rx is not None
        }

    def close(self) -> None:
        """Release both subscriptions and apply the teardown policy. Safe to call twice."""
        if self._closed or self._session is None:
            self._closed = True
            return
        self._closed = True
        if self._pipe_rx is not None:
            self._pipe_rx.close()
        if self._chat_rx is not None:
            self._chat_rx.close()
        self._pipe_rx = self._chat_rx = None
        if self._teardown == TEARDOWN_LAST:
            self._registry.detach(self.session_id)
        else:
            self._registry.remove(self.session_id)

    def _require_session(self) -> Session:
        if self._session is None or self._closed:
            raise SessionError(f"Connection is not attached to session {self.session_id}")
        return self._session
