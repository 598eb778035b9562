"""
In-process fan-out of recorded hits to live subscribers (the /ws feed).

Every successful increment publishes its key. Subscribers each get a
bounded queue; a subscriber that falls behind loses messages (logged as
lag) instead of slowing down the write path. publish() may be called from
any thread; delivery is scheduled on the subscriber's own event loop.

This is the only in-process state in the service and sits outside the
counting path: a lost feed message never affects stored counts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from hits.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Subscriber:
    queue: asyncio.Queue[str]
    loop: asyncio.AbstractEventLoop


class HitBroadcaster:
    """Publishes hit keys to every subscribed queue."""

    def __init__(self, max_queue: int = 100) -> None:
        self._max_queue = max_queue
        self._subscribers: set[_Subscriber] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[str]]:
        """Register a queue for the duration of the `async with` block."""
        subscriber = _Subscriber(
            queue=asyncio.Queue(maxsize=self._max_queue),
            loop=asyncio.get_running_loop(),
        )
        self._subscribers.add(subscriber)
        logger.info("Hit feed subscriber added (%d total)", self.subscriber_count)
        try:
            yield subscriber.queue
        finally:
            self._subscribers.discard(subscriber)
            logger.info("Hit feed subscriber removed (%d left)", self.subscriber_count)

    def publish(self, key: str) -> None:
        """Deliver `key` to every subscriber without blocking."""
        for subscriber in list(self._subscribers):
            if subscriber.loop.is_closed():
                self._subscribers.discard(subscriber)
                continue
            subscriber.loop.call_soon_threadsafe(_offer, subscriber.queue, key)


def _offer(queue: asyncio.Queue[str], key: str) -> None:
    try:
        queue.put_nowait(key)
    except asyncio.QueueFull:
        logger.warning("Hit feed subscriber lagged; dropped key %r", key)


# Application-wide instance
broadcaster = HitBroadcaster(max_queue=settings.BROADCAST_QUEUE_SIZE)
