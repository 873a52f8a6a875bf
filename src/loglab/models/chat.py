"""
Chat and pipe frame models.
"""

import time

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ChatMessage(BaseModel):
    """Structured chat message. The timestamp is the sender's clock and is never rewritten."""

    model_config = ConfigDict(frozen=True)

    sender: StrictStr
    content: StrictStr
    timestamp: int = Field(strict=True, ge=0)

    @classmethod
    def now(cls, sender: str, content: str) -> "ChatMessage":
        return cls(sender=sender, content=content, timestamp=int(time.time() * 1000))


class PipeFrame(BaseModel):
    """One relayed pipe line, as seen by a viewer."""

    model_config = ConfigDict(frozen=True)

    text: str
