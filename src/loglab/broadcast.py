"""
In-memory broadcast topics.

Every subscription owns a bounded queue. Publishing never waits: when a
subscriber's queue is full its oldest unread item is dropped to make room,
so one slow reader can neither stall the publisher nor the other readers.
"""

import asyncio
import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CAPACITY = 100


class Subscription(Generic[T]):
    """Receive side of a topic with its own cursor into the stream."""

    def __init__(self, topic: "Topic[T]", capacity: int):
        self._topic = topic
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=capacity)
        self.dropped = 0

    def offer(self, item: T) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(item)
            self.dropped += 1
            logger.debug(f"Subscriber on {self._topic.name} lagging, dropped oldest item ({self.dropped} total)")

    async def get(self) -> T:
        return await self._queue.get()

    def get_nowait(self) -> T:
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._topic.unsubscribe(self)


class Topic(Generic[T]):
    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.name = name
        self.capacity = capacity
        self._subscribers: list[Subscription[T]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription[T]:
        sub: Subscription[T] = Subscription(self, self.capacity)
        self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription[T]) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)

    def publish(self, item: T) -> int:
        """Deliver to every current subscriber. Returns the number of receivers."""
        subscribers = list(self._subscribers)
        for sub in subscribers:
            sub.offer(item)
        return len(subscribers)
