"""
Wire framing for relayed text frames.

Inbound frames are classified by content: anything that validates as a
chat message is chat, everything else is pipe data. Outbound pipe frames
carry a literal ``pipe:`` prefix; outbound chat frames are the bare JSON
object.
"""

from typing import Optional, Union

from pydantic import ValidationError

from loglab.models.chat import ChatMessage, PipeFrame

PIPE_PREFIX = "pipe:"


def parse_chat(payload: str) -> Optional[ChatMessage]:
    """Parse an inbound frame as a chat message. Returns None if it is not one."""
    try:
        return ChatMessage.model_validate_json(payload)
    except ValidationError:
        return None


def encode_pipe(text: str) -> str:
    return PIPE_PREFIX + text


def encode_chat(message: ChatMessage) -> str:
    return message.model_dump_json()


def decode_frame(frame: str) -> Optional[Union[PipeFrame, ChatMessage]]:
    """Decode a frame sent by the relay. Returns None for frames of neither kind."""
    if frame.startswith(PIPE_PREFIX):
        return PipeFrame(text=frame[len(PIPE_PREFIX):])
    return parse_chat(frame)
