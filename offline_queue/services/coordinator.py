"""Offline queue coordinator: buffering, replay and retry/drop policy.

The coordinator is the public entry point. It owns a ``QueueStore``, listens
to a ``ConnectivitySignal`` and drains the store through a caller-supplied
dispatch function in flush cycles:

    Idle --flush()--> Flushing --cycle ends--> Idle

Only one cycle runs at a time. A ``flush()`` requested while a cycle is in
progress returns immediately; items it would have covered are picked up by
the next triggered flush (a later enqueue or reconnect).

All mutations happen on the event loop that drives the coordinator. Every
cycle runs in a task held in ``_flush_tasks``. The ``_flushing`` flag is set
when that task is created and cleared when the cycle ends.

Nothing raised by a dispatch function or by the persistence backend escapes
the public methods; outcomes are reported through ``events`` and logs.

Usage:
    coordinator = OfflineQueueCoordinator(store, monitor)
    await coordinator.initialize(send_request)
    await coordinator.enqueue(QueuedItem(id=uuid4().hex, method="POST", target=url))
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import TYPE_CHECKING, Union

from offline_queue.core.errors import DispatchError, DuplicateItemError, OfflineQueueError
from offline_queue.core.events import (
    EventBus,
    FlushCompleted,
    FlushStarted,
    ItemDispatched,
    ItemDropped,
    ItemEnqueued,
)
from offline_queue.core.models import DispatchResult, QueuedItem, QueueStats
from offline_queue.core.tracing import flush_context

if TYPE_CHECKING:
    from offline_queue.core.store import QueueStore
    from offline_queue.ports.connectivity import ConnectivitySignal, Subscription

logger = logging.getLogger(__name__)

DispatchOutcome = Union[DispatchResult, bool, None]

# A dispatch function may be sync or async. Returning None, True or
# DispatchResult.success() means success; raising, returning False or
# DispatchResult.failure(error) means failure.
Dispatcher = Callable[[QueuedItem], Union[DispatchOutcome, Awaitable[DispatchOutcome]]]


class OfflineQueueCoordinator:
    """Buffers outbound operations offline and replays them in order.

    Lifecycle: construct, ``initialize()`` once, use, ``dispose()``.

    Example:
        async with OfflineQueueCoordinator(store, monitor) as queue:
            await queue.initialize(dispatch)
            await queue.enqueue(item)
    """

    def __init__(
        self,
        store: QueueStore,
        connectivity: ConnectivitySignal,
        *,
        event_bus: EventBus | None = None,
        name: str = "OfflineQueue",
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Durable store holding the pending items.
            connectivity: Signal polled before each dispatch and observed
                for offline-to-online transitions.
            event_bus: Bus to publish lifecycle events on. A private bus is
                created when omitted.
            name: Tag included in every log line.
        """
        self._store = store
        self._connectivity = connectivity
        self._events = event_bus or EventBus()
        self._name = name

        self._dispatch: Dispatcher | None = None
        self._initializing = False
        self._subscription: Subscription | None = None
        self._last_connected = connectivity.is_connected
        self._flushing = False
        self._flush_tasks: set[asyncio.Task[None]] = set()

        # Statistics
        self._flush_cycles = 0
        self._dispatched = 0
        self._dropped = 0
        self._failed_attempts = 0
        self._persist_failures = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def events(self) -> EventBus:
        """Broadcast bus of ``QueueEvent`` values."""
        return self._events

    @property
    def pending_count(self) -> int:
        """Number of items currently queued."""
        return len(self._store)

    @property
    def is_initialized(self) -> bool:
        return self._dispatch is not None

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    def pending_items(self) -> tuple[QueuedItem, ...]:
        """Ordered snapshot of the queued items."""
        return self._store.snapshot()

    def get_stats(self) -> QueueStats:
        """Get coordinator counters."""
        return QueueStats(
            pending=len(self._store),
            initialized=self.is_initialized,
            flushing=self._flushing,
            flush_cycles=self._flush_cycles,
            dispatched=self._dispatched,
            dropped=self._dropped,
            failed_attempts=self._failed_attempts,
            persist_failures=self._persist_failures,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self, dispatch: Dispatcher) -> None:
        """Load persisted items and start listening for reconnects.

        Must be called once before ``enqueue`` or ``flush``. Later calls are
        logged and ignored.

        Args:
            dispatch: Function that performs the network operation for one item.
        """
        if self._dispatch is not None or self._initializing:
            logger.warning("[%s] initialize() called more than once, ignoring", self._name)
            return

        self._initializing = True
        try:
            loaded = await self._store.load_persisted()
        finally:
            self._initializing = False

        self._dispatch = dispatch
        self._last_connected = self._connectivity.is_connected
        self._subscription = self._connectivity.subscribe(self._on_connectivity_change)

        logger.info("[%s] Initialized with %d persisted item(s)", self._name, loaded)

    async def dispose(self) -> None:
        """Tear down: stop listening, cancel running flushes, close events.

        A cancelled cycle persists the progress it made before the in-memory
        queue is cleared. The coordinator returns to the uninitialized state
        with an empty in-memory queue and a fresh event bus. Persisted state
        is not cleared.
        """
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

        current = asyncio.current_task()
        tasks = [task for task in self._flush_tasks if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._flush_tasks.clear()

        self._events.close()
        self._events = EventBus()
        self._store.clear()
        self._dispatch = None
        self._flushing = False
        logger.debug("[%s] Disposed", self._name)

    async def wait_idle(self) -> None:
        """Wait until every running flush cycle has finished."""
        while self._flush_tasks:
            await asyncio.gather(*list(self._flush_tasks), return_exceptions=True)

    async def __aenter__(self) -> OfflineQueueCoordinator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    # =========================================================================
    # Public API
    # =========================================================================

    async def enqueue(self, item: QueuedItem) -> bool:
        """Append an item, persist the queue, and flush if online.

        Blocks on the persistence write and, when online, on the flush it
        triggers. Never raises.

        Args:
            item: The operation to buffer.

        Returns:
            True if the item was admitted; False before ``initialize()`` or
            when an item with the same id is already queued.
        """
        if self._dispatch is None:
            logger.warning("[%s] enqueue() called before initialize(), skipping", self._name)
            return False

        try:
            self._store.append(item)
        except DuplicateItemError:
            logger.warning("[%s] Item %s is already queued, skipping", self._name, item.id)
            return False

        await self._persist()
        self._events.publish(ItemEnqueued(item))
        logger.debug(
            "[%s] Enqueued %s %s (queue depth: %d)",
            self._name,
            item.method,
            item.target,
            len(self._store),
        )

        if self._connectivity.is_connected:
            await self.flush()
        return True

    async def flush(self) -> None:
        """Dispatch queued items in FIFO order.

        Successful items are removed. Failed items have their attempt count
        bumped in place and are retried on a later cycle until the budget is
        exhausted, at which point they are dropped and ``ItemDropped`` is
        published. The cycle stops early, leaving the rest queued untouched,
        as soon as the connectivity signal reports offline.

        Concurrent calls are coalesced: only one cycle runs at a time. The
        cycle runs in a tracked task, so ``dispose()`` can cancel it while
        this call is waiting on it.
        """
        task = self._start_cycle()
        if task is None:
            return
        await asyncio.wait({task})
        if not task.cancelled():
            task.result()

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_cycle(self) -> asyncio.Task[None] | None:
        """Snapshot the queue and start a cycle task, unless one is running."""
        if self._dispatch is None:
            logger.warning("[%s] flush() called before initialize(), skipping", self._name)
            return None
        if self._flushing or len(self._store) == 0:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[%s] No running event loop, cannot start flush", self._name)
            return None

        self._flushing = True
        self._flush_cycles += 1
        task = loop.create_task(
            self._run_cycle(self._dispatch, self._store.snapshot()),
            name=f"{self._name}-flush",
        )
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)
        return task

    async def _run_cycle(self, dispatch: Dispatcher, snapshot: tuple[QueuedItem, ...]) -> None:
        succeeded = 0
        dropped = 0

        with flush_context(len(snapshot)) as ctx:
            self._events.publish(FlushStarted(len(snapshot)))
            logger.info("[%s] Flush started: %d item(s)", self._name, len(snapshot))

            try:
                for position, item in enumerate(snapshot):
                    if not self._connectivity.is_connected:
                        logger.warning(
                            "[%s] Connectivity lost mid-flush, deferring %d item(s)",
                            self._name,
                            len(snapshot) - position,
                        )
                        break

                    error = await self._attempt(dispatch, item)
                    if error is None:
                        self._store.remove(item)
                        succeeded += 1
                        self._events.publish(ItemDispatched(item))
                        logger.debug("[%s] Dispatched %s", self._name, item)
                        continue

                    self._failed_attempts += 1
                    updated = item.with_incremented_attempt()
                    if updated.is_exhausted:
                        self._store.remove(item)
                        dropped += 1
                        self._events.publish(ItemDropped(updated, error))
                        logger.warning(
                            "[%s] Dropped %s %s after %d attempt(s): %s",
                            self._name,
                            item.method,
                            item.target,
                            updated.attempt_count,
                            error,
                        )
                    else:
                        self._store.replace(item, updated)
                        logger.warning(
                            "[%s] Dispatch failed (attempt %d/%d) for %s %s: %s",
                            self._name,
                            updated.attempt_count,
                            updated.max_attempts + 1,
                            item.method,
                            item.target,
                            error,
                        )
            finally:
                await self._persist()
                self._flushing = False
                self._dispatched += succeeded
                self._dropped += dropped
                self._events.publish(FlushCompleted(succeeded=succeeded, dropped=dropped))
                logger.info(
                    "[%s] Flush complete in %.1fms: %d succeeded, %d dropped, %d remaining",
                    self._name,
                    ctx.elapsed_ms(),
                    succeeded,
                    dropped,
                    len(self._store),
                )

    async def _attempt(self, dispatch: Dispatcher, item: QueuedItem) -> OfflineQueueError | None:
        """Run one dispatch attempt. Returns the failure, or None on success."""
        try:
            result = dispatch(item)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            return self._as_queue_error(e)

        if result is False:
            return DispatchError("Dispatch reported failure")
        if isinstance(result, DispatchResult) and not result.succeeded:
            if result.error is None:
                return DispatchError("Dispatch reported failure")
            return self._as_queue_error(result.error)
        return None

    @staticmethod
    def _as_queue_error(error: BaseException) -> OfflineQueueError:
        if isinstance(error, OfflineQueueError):
            return error
        return DispatchError(str(error) or type(error).__name__, cause=error)

    async def _persist(self) -> None:
        if not await self._store.persist():
            self._persist_failures += 1

    def _on_connectivity_change(self, connected: bool) -> None:
        was_connected = self._last_connected
        self._last_connected = connected
        if not connected or was_connected:
            return
        if self._dispatch is None or len(self._store) == 0:
            return

        logger.info(
            "[%s] Connectivity restored, flushing %d queued item(s)",
            self._name,
            len(self._store),
        )
        self._start_cycle()

    def __repr__(self) -> str:
        return (
            f"OfflineQueueCoordinator(name={self._name!r}, pending={len(self._store)}, "
            f"flushing={self._flushing}, initialized={self.is_initialized})"
        )
