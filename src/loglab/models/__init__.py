from loglab.models.chat import ChatMessage, PipeFrame
from loglab.models.session import SessionResponse

__all__ = ["ChatMessage", "PipeFrame", "SessionResponse"]
