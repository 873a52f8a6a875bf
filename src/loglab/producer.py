"""
Producer — forwards every line of a text source as one outbound frame.

Sends are awaited one at a time: a stalled connection stalls reading.
Any source or send failure propagates to the caller.
"""

import logging
from typing import Awaitable, Callable

from loglab.source import TextSource

logger = logging.getLogger(__name__)


class Producer:
    def __init__(self, source: TextSource, send: Callable[[str], Awaitable[None]]):
        self._source = source
        self._send = send
        self.sent = 0

    async def run(self) -> int:
        """Stream until the source ends. Returns the number of lines sent."""
        async for line in self._source.lines():
            await self._send(line)
            self.sent += 1
            logger.debug(f"Sent line {self.sent}")
        logger.info(f"Source exhausted after {self.sent} lines")
        return self.sent
