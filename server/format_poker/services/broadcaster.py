"""In-memory fan-out of vote count changes to live (SSE) viewers.

One broadcaster per process. Each connected viewer owns a ``Subscription``
wrapping a bounded ``asyncio.Queue`` bound to the event loop it subscribed
from. ``publish`` may be called from any thread (sync routes run in the
threadpool); cross-thread delivery goes through ``call_soon_threadsafe``,
which keeps each channel's events in publish order.

There is no replay buffer: a viewer that is not connected when an event is
published never sees it and is expected to re-fetch the catalog.
"""

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 64


class BroadcastDeliveryError(Exception):
    """A single channel could not take an event. Never leaves the broadcaster."""


@dataclass(frozen=True)
class VoteEvent:
    id: str
    votes: int

    def to_dict(self) -> dict[str, str | int]:
        return asdict(self)


_CLOSED = object()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Subscription:
    """One viewer's channel. Iterate ``events()`` until the handle closes."""

    def __init__(self, broadcaster: "Broadcaster", maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._loop = _running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def deliver(self, event: VoteEvent) -> None:
        """Hand an event to this channel.

        Raises:
            BroadcastDeliveryError: If the channel is closed, its loop is gone,
                or its queue is full (the reader stopped consuming).
        """
        if self.closed:
            raise BroadcastDeliveryError("channel closed")
        loop = self._loop
        if loop is None or loop is _running_loop():
            self._offer(event)
            return
        if loop.is_closed():
            raise BroadcastDeliveryError("event loop closed")
        try:
            loop.call_soon_threadsafe(self._offer_threadsafe, event)
        except RuntimeError as exc:
            raise BroadcastDeliveryError("event loop closed") from exc

    def _offer(self, event: VoteEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            raise BroadcastDeliveryError("queue full") from exc

    def _offer_threadsafe(self, event: VoteEvent) -> None:
        # Runs on the subscriber's loop, after publish() has returned
        if self.closed:
            return
        try:
            self._offer(event)
        except BroadcastDeliveryError:
            logger.debug("Live channel overflowed, dropping subscriber")
            self._broadcaster.unsubscribe(self)

    def close(self) -> None:
        """Close the handle and wake a reader blocked in ``get``."""
        if self.closed:
            return
        self.closed = True
        loop = self._loop
        if loop is None or loop is _running_loop():
            self._wake()
        elif not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._wake)
            except RuntimeError:
                pass

    def _wake(self) -> None:
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Reader sees `closed` once it drains the backlog
            pass

    def get_nowait(self) -> VoteEvent | None:
        """Pop one pending event, or None if nothing is queued or the handle closed."""
        if self._queue.empty():
            return None
        item = self._queue.get_nowait()
        return None if item is _CLOSED else item

    async def get(self, timeout: float | None = None) -> VoteEvent | None:
        """Wait for the next event.

        Returns None when the handle is closed.

        Raises:
            TimeoutError: If ``timeout`` elapses first.
        """
        if self.closed and self._queue.empty():
            return None
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            return None
        return item

    async def events(self) -> AsyncIterator[VoteEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class Broadcaster:
    """Process-wide registry of open live channels."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._lock = threading.Lock()
        self._subscriptions: dict[Subscription, None] = {}

    def subscribe(self) -> Subscription:
        """Open a channel. Call from the event loop that will read it."""
        subscription = Subscription(self, self._queue_size)
        with self._lock:
            self._subscriptions[subscription] = None
            count = len(self._subscriptions)
        logger.debug("Live subscriber added (total: %d)", count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Close and remove a channel. Safe to call more than once."""
        with self._lock:
            self._subscriptions.pop(subscription, None)
            count = len(self._subscriptions)
        subscription.close()
        logger.debug("Live subscriber removed (total: %d)", count)

    def publish(self, format_id: str, votes: int) -> int:
        """Fan a vote count out to every open channel.

        A channel that fails is dropped; the others still get the event.
        Returns the number of channels the event was handed to.
        """
        event = VoteEvent(id=format_id, votes=votes)
        with self._lock:
            targets = list(self._subscriptions)

        delivered = 0
        for subscription in targets:
            try:
                subscription.deliver(event)
            except BroadcastDeliveryError as exc:
                logger.debug("Dropping live subscriber: %s", exc)
                self.unsubscribe(subscription)
            else:
                delivered += 1
        return delivered

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def close_all(self) -> int:
        """Close every channel (process shutdown). Returns how many were open."""
        with self._lock:
            targets = list(self._subscriptions)
            self._subscriptions.clear()
        for subscription in targets:
            subscription.close()
        if targets:
            logger.info("Closed %d live subscriber(s)", len(targets))
        return len(targets)


# Singleton instance
_broadcaster: Broadcaster | None = None
_broadcaster_lock = threading.Lock()


def get_broadcaster() -> Broadcaster:
    """Get the process-wide broadcaster, creating it on first use."""
    global _broadcaster
    with _broadcaster_lock:
        if _broadcaster is None:
            from format_poker.core.config import get_settings

            _broadcaster = Broadcaster(queue_size=get_settings().live_queue_size)
        return _broadcaster


def publish_vote(format_id: str, votes: int) -> int:
    """Convenience function to publish on the singleton broadcaster."""
    return get_broadcaster().publish(format_id, votes)
