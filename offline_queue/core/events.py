"""Lifecycle events published by the offline queue.

Events form a closed set of tagged variants. Each is a frozen dataclass with
a ``kind`` tag, and ``QueueEvent`` is their union, so consumers can switch on
either ``isinstance`` or ``match``::

    async for event in coordinator.events.subscribe():
        match event:
            case ItemDropped(item=item, error=error):
                alert(item, error)
            case FlushCompleted(succeeded=ok, dropped=lost):
                update_badge(ok, lost)

The ``EventBus`` fans events out to any number of independent subscribers.
Publishing never blocks and never fails: subscriptions buffer without bound
and listener exceptions are logged and swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import ClassVar, Literal, Union

from offline_queue.core.models import QueuedItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemEnqueued:
    """An item was admitted to the queue."""

    kind: ClassVar[Literal["item_enqueued"]] = "item_enqueued"
    item: QueuedItem


@dataclass(frozen=True)
class ItemDispatched:
    """An item was dispatched successfully and removed from the queue."""

    kind: ClassVar[Literal["item_dispatched"]] = "item_dispatched"
    item: QueuedItem


@dataclass(frozen=True)
class ItemDropped:
    """An item exhausted its attempt budget and was removed.

    ``item`` carries the final attempt count (``max_attempts + 1``) and
    ``error`` the failure from the last attempt.
    """

    kind: ClassVar[Literal["item_dropped"]] = "item_dropped"
    item: QueuedItem
    error: BaseException


@dataclass(frozen=True)
class FlushStarted:
    """A flush cycle started over a snapshot of ``pending_count`` items."""

    kind: ClassVar[Literal["flush_started"]] = "flush_started"
    pending_count: int


@dataclass(frozen=True)
class FlushCompleted:
    """A flush cycle finished."""

    kind: ClassVar[Literal["flush_completed"]] = "flush_completed"
    succeeded: int
    dropped: int


QueueEvent = Union[ItemEnqueued, ItemDispatched, ItemDropped, FlushStarted, FlushCompleted]

EventListener = Callable[[QueueEvent], None]

_CLOSED = object()


class EventSubscription:
    """An independent, unbounded buffer of events for one consumer.

    Iterate with ``async for``; iteration ends when the subscription or the
    owning bus is closed. ``drain()`` returns whatever is buffered without
    waiting, which is convenient in tests.
    """

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, event: object) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    async def get(self) -> QueueEvent | None:
        """Wait for the next event; returns None once closed and drained."""
        if self._closed and self._queue.empty():
            return None
        event = await self._queue.get()
        if event is _CLOSED:
            return None
        return event  # type: ignore[return-value]

    def drain(self) -> list[QueueEvent]:
        """Return every buffered event without waiting."""
        events: list[QueueEvent] = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is _CLOSED:
                continue
            events.append(event)  # type: ignore[arg-type]
        return events

    def close(self) -> None:
        """Detach from the bus and end iteration."""
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[QueueEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[QueueEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class EventBus:
    """Broadcast channel for ``QueueEvent`` values."""

    def __init__(self) -> None:
        self._subscriptions: list[EventSubscription] = []
        self._listeners: list[EventListener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def subscribe(self) -> EventSubscription:
        """Attach a new buffered subscription.

        Subscribing to a closed bus returns an already-closed subscription.
        """
        subscription = EventSubscription(self)
        if self._closed:
            subscription.close()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        """Register a synchronous callback; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def publish(self, event: QueueEvent) -> None:
        """Deliver an event to every subscription and listener."""
        if self._closed:
            logger.debug("Event bus closed, discarding %s", event.kind)
            return

        for subscription in list(self._subscriptions):
            subscription._push(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.error("Event listener failed on %s", event.kind, exc_info=True)

    def close(self) -> None:
        """Close the bus and every subscription attached to it."""
        if self._closed:
            return
        self._closed = True
        for subscription in list(self._subscriptions):
            subscription.close()
        self._subscriptions.clear()
        self._listeners.clear()

    def _detach(self, subscription: EventSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
