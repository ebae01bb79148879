"""Core components for the offline queue."""

from offline_queue.core.connectivity import ConnectivityMonitor, ListenerSubscription
from offline_queue.core.errors import (
    ConfigurationError,
    DispatchError,
    DuplicateItemError,
    ItemNotFoundError,
    NoConnectivityError,
    OfflineQueueError,
    PersistenceError,
    QueueDecodeError,
)
from offline_queue.core.events import (
    EventBus,
    EventSubscription,
    FlushCompleted,
    FlushStarted,
    ItemDispatched,
    ItemDropped,
    ItemEnqueued,
    QueueEvent,
)
from offline_queue.core.models import DispatchResult, QueuedItem, QueueStats
from offline_queue.core.store import QueueStore, decode_items, encode_items

__all__ = [
    # Connectivity
    "ConnectivityMonitor",
    "ListenerSubscription",
    # Errors
    "ConfigurationError",
    "DispatchError",
    "DuplicateItemError",
    "ItemNotFoundError",
    "NoConnectivityError",
    "OfflineQueueError",
    "PersistenceError",
    "QueueDecodeError",
    # Events
    "EventBus",
    "EventSubscription",
    "FlushCompleted",
    "FlushStarted",
    "ItemDispatched",
    "ItemDropped",
    "ItemEnqueued",
    "QueueEvent",
    # Models
    "DispatchResult",
    "QueuedItem",
    "QueueStats",
    # Store
    "QueueStore",
    "decode_items",
    "encode_items",
]
