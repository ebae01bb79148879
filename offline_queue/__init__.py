"""Offline Queue - durable buffering and ordered replay of outbound operations."""

__version__ = "0.1.0"

# Re-export core components for convenience
from offline_queue.config import Settings, get_settings
from offline_queue.core import (
    ConnectivityMonitor,
    DispatchError,
    DispatchResult,
    EventBus,
    FlushCompleted,
    FlushStarted,
    ItemDispatched,
    ItemDropped,
    ItemEnqueued,
    NoConnectivityError,
    OfflineQueueError,
    PersistenceError,
    QueuedItem,
    QueueEvent,
    QueueStats,
    QueueStore,
)
from offline_queue.factory import QueueComponents, create_coordinator
from offline_queue.services import OfflineQueueCoordinator

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "OfflineQueueError",
    "DispatchError",
    "NoConnectivityError",
    "PersistenceError",
    # Models
    "QueuedItem",
    "DispatchResult",
    "QueueStats",
    # Events
    "QueueEvent",
    "ItemEnqueued",
    "ItemDispatched",
    "ItemDropped",
    "FlushStarted",
    "FlushCompleted",
    "EventBus",
    # Components
    "ConnectivityMonitor",
    "QueueStore",
    "OfflineQueueCoordinator",
    "QueueComponents",
    "create_coordinator",
]
