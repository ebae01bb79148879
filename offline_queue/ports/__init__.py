"""Port interfaces for the offline queue."""

from offline_queue.ports.connectivity import (
    ConnectivityListener,
    ConnectivitySignal,
    ReachabilityProbe,
    Subscription,
)
from offline_queue.ports.storage import KeyValueBackend

__all__ = [
    "ConnectivityListener",
    "ConnectivitySignal",
    "KeyValueBackend",
    "ReachabilityProbe",
    "Subscription",
]
