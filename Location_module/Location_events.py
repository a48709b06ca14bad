"""
In-process live update bus.
Ingestion publishes the reconciled position; map dashboards subscribe over WebSocket.
Delivery is fan-out, at most once per subscriber, with no buffering guarantee.
"""
import asyncio
import itertools
import logging
import threading
from typing import Callable, Optional

from .Location_schema import LiveUpdate

logger = logging.getLogger(__name__)

Subscriber = Callable[[LiveUpdate], None]


class LocationEventBus:
    """Thread-safe subscriber registry. publish() never waits on a subscriber."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[int, Subscriber] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, callback: Subscriber) -> int:
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = callback
        logger.debug(f"Live update subscriber added | token: {token}")
        return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            removed = self._subscribers.pop(token, None) is not None
        if removed:
            logger.debug(f"Live update subscriber removed | token: {token}")
        return removed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: LiveUpdate) -> bool:
        """
        Deliver to every subscriber registered at call time.
        Returns False if any subscriber raised; failures never propagate.
        """
        with self._lock:
            subscribers = list(self._subscribers.items())

        delivered_all = True
        for token, callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                delivered_all = False
                logger.warning(f"Failed to deliver live update | token: {token} | Error: {str(e)}")
        return delivered_all


class QueueSubscriber:
    """
    Hands events from any thread to an asyncio.Queue owned by `loop`.
    A full queue drops the event rather than slowing ingestion down.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 100):
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def __call__(self, event: LiveUpdate) -> None:
        self.loop.call_soon_threadsafe(self._offer, event)

    def _offer(self, event: LiveUpdate) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug(f"Live update dropped for slow subscriber | dropped so far: {self.dropped}")


_event_bus: Optional[LocationEventBus] = None
_event_bus_lock = threading.Lock()


def get_event_bus() -> LocationEventBus:
    """Process-wide bus, created on first use."""
    global _event_bus
    if _event_bus is None:
        with _event_bus_lock:
            if _event_bus is None:
                _event_bus = LocationEventBus()
    return _event_bus


def set_event_bus(bus: Optional[LocationEventBus]) -> None:
    """Replace the process bus (None resets it to a fresh bus on next use)."""
    global _event_bus
    with _event_bus_lock:
        _event_bus = bus
