"""Broadcast channel for cache events.

Subscribers only receive events published after they subscribed; there is
no replay buffer.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from radiocache.core.cache.models import CacheEvent


logger = logging.getLogger(__name__)

CacheEventListener = Callable[[CacheEvent], None]

_CLOSED = object()


class CacheEventSubscription:
    """Async iterator over the events published after subscription."""

    def __init__(self, broadcaster: "CacheEventBroadcaster") -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    def _push(self, item: object) -> None:
        self._queue.put_nowait(item)

    @property
    def pending(self) -> int:
        """Number of events received but not consumed yet."""
        return self._queue.qsize()

    async def get(self) -> CacheEvent | None:
        """Wait for the next event, None once the channel is closed."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            return None
        return item  # type: ignore[return-value]

    def get_nowait(self) -> CacheEvent | None:
        """Return the next queued event, or None when nothing is queued."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if item is _CLOSED:
            self._closed = True
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop receiving events."""
        self._broadcaster._unsubscribe(self)
        if not self._closed:
            self._push(_CLOSED)

    def __aiter__(self) -> AsyncIterator[CacheEvent]:
        return self

    async def __anext__(self) -> CacheEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ListenerHandle:
    """Handle returned by ``CacheEventBroadcaster.listen``."""

    def __init__(
        self, broadcaster: "CacheEventBroadcaster", listener: CacheEventListener
    ) -> None:
        self._broadcaster = broadcaster
        self._listener = listener

    def cancel(self) -> None:
        self._broadcaster._remove_listener(self._listener)


class CacheEventBroadcaster:
    """Multi-subscriber publish channel for ``CacheEvent``s.

    Two ways to observe events:

    - ``subscribe()`` returns an async iterable subscription with its own
      unbounded queue.
    - ``listen(callback)`` registers a synchronous callback invoked during
      ``publish``. Callback failures are logged and swallowed so that
      observers can never break the cache operation that emitted the event.
    """

    def __init__(self) -> None:
        self._subscriptions: list[CacheEventSubscription] = []
        self._listeners: list[CacheEventListener] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def subscribe(self) -> CacheEventSubscription:
        subscription = CacheEventSubscription(self)
        if self._closed:
            subscription._push(_CLOSED)
        else:
            self._subscriptions.append(subscription)
        return subscription

    def listen(self, listener: CacheEventListener) -> ListenerHandle:
        if not self._closed:
            self._listeners.append(listener)
        return ListenerHandle(self, listener)

    def publish(self, event: CacheEvent) -> None:
        if self._closed:
            return

        for subscription in list(self._subscriptions):
            subscription._push(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning("Cache event listener failed for %s: %s", event, e)

    def close(self) -> None:
        """Close the channel, ending every subscription."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription._push(_CLOSED)
        self._subscriptions.clear()
        self._listeners.clear()

    def _unsubscribe(self, subscription: CacheEventSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _remove_listener(self, listener: CacheEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
