"""Protocol interfaces for the connectivity signal."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

ConnectivityListener = Callable[[bool], None]

# Async callable answering "is the network reachable right now?"
ReachabilityProbe = Callable[[], Awaitable[bool]]


class Subscription(Protocol):
    """Handle returned by ``ConnectivitySignal.subscribe``."""

    def cancel(self) -> None:
        """Stop delivering notifications to the listener. Idempotent."""
        ...


class ConnectivitySignal(Protocol):
    """Source of online/offline transitions.

    ``is_connected`` is polled synchronously before every dispatch attempt,
    while ``subscribe`` delivers transitions as they settle. Listeners are
    plain callables invoked on the event loop; they must not block.
    """

    @property
    def is_connected(self) -> bool:
        """The most recently observed connectivity status."""
        ...

    def subscribe(self, listener: ConnectivityListener) -> Subscription:
        """Register a listener for connectivity transitions.

        Args:
            listener: Called with the new status on each published transition.

        Returns:
            A subscription handle that detaches the listener when cancelled.
        """
        ...
