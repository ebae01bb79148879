"""Debounced connectivity monitor.

The monitor is the default ``ConnectivitySignal``. Raw observations come in
through ``set_status()`` (from a platform hook, or from ``check_now()`` when
a reachability probe is configured). ``is_connected`` always reflects the
latest observation, while listeners only hear about a change once it has
held for the debounce window and differs from what they last heard. Rapid
on/off flaps therefore never reach subscribers.

Status starts optimistic (connected) until the first observation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from offline_queue.ports.connectivity import ConnectivityListener, ReachabilityProbe

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class ListenerSubscription:
    """Subscription handle for a ``ConnectivityMonitor`` listener."""

    def __init__(self, monitor: ConnectivityMonitor, listener: ConnectivityListener) -> None:
        self._monitor = monitor
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._monitor._remove_listener(self._listener)


class ConnectivityMonitor:
    """Connectivity signal with debounced, de-duplicated notifications.

    Example:
        monitor = ConnectivityMonitor(probe=TcpProbe("1.1.1.1", 443))
        monitor.subscribe(lambda online: print("online" if online else "offline"))
        monitor.start(interval=30.0)
        ...
        await monitor.close()
    """

    def __init__(
        self,
        probe: ReachabilityProbe | None = None,
        *,
        initial: bool = True,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        """Initialize the monitor.

        Args:
            probe: Optional async reachability check used by ``check_now()``.
            initial: Status assumed before the first observation.
            debounce_seconds: How long a new status must hold before
                listeners are notified. Zero notifies immediately.
        """
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")

        self._probe = probe
        self._debounce_seconds = debounce_seconds
        self._status = initial
        self._published = initial
        self._listeners: list[ConnectivityListener] = []
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def is_connected(self) -> bool:
        """The most recently observed status (not debounced)."""
        return self._status

    @property
    def published_status(self) -> bool:
        """The last status delivered to listeners."""
        return self._published

    @property
    def debounce_seconds(self) -> float:
        return self._debounce_seconds

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def subscribe(self, listener: ConnectivityListener) -> ListenerSubscription:
        self._listeners.append(listener)
        return ListenerSubscription(self, listener)

    def set_status(self, connected: bool) -> None:
        """Record a connectivity observation.

        Listeners are notified after the debounce window if the settled
        value differs from the last published one. Without a running event
        loop the value settles immediately.
        """
        if connected != self._status:
            logger.info("Network is now %s", "online" if connected else "offline")
        self._status = connected

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

        if self._debounce_seconds == 0:
            self._settle()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._settle()
            return
        self._debounce_handle = loop.call_later(self._debounce_seconds, self._settle)

    async def check_now(self) -> bool:
        """Run the reachability probe and record its result.

        Returns:
            The probed status, or the last known status if no probe is
            configured or the probe raised.
        """
        if self._probe is None:
            return self._status

        try:
            connected = bool(await self._probe())
        except Exception:
            logger.error("Connectivity check failed", exc_info=True)
            return self._status

        self.set_status(connected)
        return connected

    def start(self, interval: float) -> None:
        """Start probing periodically in a background task.

        Safe to call multiple times; only one polling task runs.

        Raises:
            ValueError: If interval is not positive.
            RuntimeError: If called outside a running event loop.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if self.polling:
            logger.debug("Connectivity polling already running")
            return
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll(interval), name="connectivity-monitor"
        )
        logger.info("Connectivity polling started (interval=%.1fs)", interval)

    async def stop(self) -> None:
        """Stop periodic probing."""
        task = self._poll_task
        self._poll_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("Connectivity polling stopped")

    async def close(self) -> None:
        """Stop polling, cancel any pending notification and drop listeners."""
        await self.stop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._listeners.clear()

    async def _poll(self, interval: float) -> None:
        while True:
            await self.check_now()
            await asyncio.sleep(interval)

    def _settle(self) -> None:
        self._debounce_handle = None
        if self._status == self._published:
            return
        self._published = self._status
        logger.debug("Publishing connectivity change: %s", self._published)
        for listener in list(self._listeners):
            try:
                listener(self._published)
            except Exception:
                logger.error("Connectivity listener failed", exc_info=True)

    def _remove_listener(self, listener: ConnectivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __repr__(self) -> str:
        return (
            f"ConnectivityMonitor(connected={self._status}, "
            f"debounce={self._debounce_seconds}s, listeners={len(self._listeners)})"
        )
