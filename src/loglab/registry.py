"""
Session registry — the only state shared between connections.

All reads and writes go through one lock. Callers never see the
underlying mapping; they get Session objects whose topics they may
subscribe to and publish on.
Ids of removed sessions are retired: they are never issued again.
"""

import logging
import threading
import uuid
from typing import Callable, Optional

from loglab.broadcast import DEFAULT_CAPACITY, Topic
from loglab.errors import SessionError
from loglab.models.chat import ChatMessage

logger = logging.getLogger(__name__)


class Session:
    __slots__ = ("id", "pipe", "chat", "connections")

    def __init__(self, session_id: str, capacity: int = DEFAULT_CAPACITY):
        self.id = session_id
        self.pipe: Topic[str] = Topic(f"{session_id}/pipe", capacity)
        self.chat: Topic[ChatMessage] = Topic(f"{session_id}/chat", capacity)
        self.connections = 0

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, connections={self.connections})"


class SessionRegistry:
    def __init__(self, capacity: int = DEFAULT_CAPACITY, id_factory: Optional[Callable[[], str]] = None):
        self._capacity = capacity
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._sessions: dict[str, Session] = {}
        self._retired: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def create(self) -> str:
        """Allocate a fresh session id with two empty topics."""
        with self._lock:
            session_id = self._id_factory()
            while session_id in self._sessions or session_id in self._retired:
                session_id = self._id_factory()
            self._sessions[session_id] = Session(session_id, self._capacity)
        logger.info(f"Session {session_id} created")
        return session_id

    def lookup(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Remove a session. Removing an absent id is a no-op. Returns True if it was present."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                self._retired.add(session_id)
        if session is not None:
            logger.info(f"Session {session_id} closed")
        return session is not None

    def attach(self, session_id: str) -> Session:
        """Resolve a session for a new connection and count it as attached."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionError(f"Invalid session ID: {session_id}", code="unknown_session",
                                   details={"session_id": session_id})
            session.connections += 1
            return session

    def detach(self, session_id: str) -> bool:
        """Drop one attached connection; remove the session once none are left.

        Returns True if this call removed the session.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.connections = max(session.connections - 1, 0)
            if session.connections:
                return False
            del self._sessions[session_id]
            self._retired.add(session_id)
        logger.info(f"Session {session_id} closed (last connection left)")
        return True
