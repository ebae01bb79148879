"""Infrastructure adapters for the offline queue."""

from offline_queue.adapters.probe import TcpProbe
from offline_queue.adapters.storage import FileBackend, InMemoryBackend

__all__ = [
    "FileBackend",
    "InMemoryBackend",
    "TcpProbe",
]
