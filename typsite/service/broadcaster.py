"""Fan-out of reload signals to connected browsers."""

from __future__ import annotations

import asyncio
from typing import Optional, Set

from ..logging import get_logger
from ..models import RELOAD, ReloadSignal

DEFAULT_CAPACITY = 16


class Subscription:
    """One subscriber's bounded view of the broadcast stream.

    When the buffer is full the oldest pending signal is dropped and ``lagged``
    is incremented; the subscription stays open and keeps receiving.
    """

    def __init__(self, broadcaster: "ReloadBroadcaster", capacity: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[ReloadSignal] = asyncio.Queue(maxsize=capacity)
        self.lagged = 0
        self.closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, signal: ReloadSignal) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.lagged += 1
        self._queue.put_nowait(signal)

    async def receive(self) -> ReloadSignal:
        return await self._queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._broadcaster._unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ReloadBroadcaster:
    """Publish/subscribe bus for reload signals.

    Subscriptions and ``publish`` belong to the event loop thread; other
    threads must use ``publish_threadsafe``.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("broadcast capacity must be at least 1")
        self.capacity = capacity
        self._loop = loop
        self._subscribers: Set[Subscription] = set()
        self.logger = get_logger("broadcaster")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self.capacity)
        self._subscribers.add(subscription)
        self.logger.debug("client subscribed (%d connected)", len(self._subscribers))
        return subscription

    def publish(self, signal: ReloadSignal = RELOAD) -> int:
        """Deliver ``signal`` to every current subscriber. Return how many received it."""
        subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription.offer(signal)
        self.logger.debug("reload sent to %d client(s)", len(subscribers))
        return len(subscribers)

    def publish_threadsafe(self, signal: ReloadSignal = RELOAD) -> None:
        if self._loop is None:
            raise RuntimeError("broadcaster was created without an event loop")
        self._loop.call_soon_threadsafe(self.publish, signal)

    def _unsubscribe(self, subscription: Subscription) -> None:
        self._subscribers.discard(subscription)
        self.logger.debug("client disconnected (%d connected)", len(self._subscribers))


__all__ = ["DEFAULT_CAPACITY", "ReloadBroadcaster", "Subscription"]
