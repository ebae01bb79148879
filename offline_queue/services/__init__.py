"""Service layer for the offline queue."""

from offline_queue.services.coordinator import (
    Dispatcher,
    DispatchOutcome,
    OfflineQueueCoordinator,
)

__all__ = [
    "DispatchOutcome",
    "Dispatcher",
    "OfflineQueueCoordinator",
]
