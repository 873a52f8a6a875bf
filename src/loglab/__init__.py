"""
loglab — stream log lines and chat to everyone watching a session.

Socket.IO relay server + client for piping text into a shared session.
"""

from loglab.client import AsyncLogLab
from loglab.errors import LogLabError, SessionError, ConnectionError, SourceError
from loglab.models.chat import ChatMessage, PipeFrame
from loglab.registry import Session, SessionRegistry
from loglab.server import RelayServer
from loglab.source import StreamSource, TailSource

__version__ = "0.1.0"
__all__ = [
    "AsyncLogLab",
    "RelayServer",
    "Session",
    "SessionRegistry",
    "TailSource",
    "StreamSource",
    "ChatMessage",
    "PipeFrame",
    "LogLabError",
    "SessionError",
    "ConnectionError",
    "SourceError",
]
