"""Component factory for wiring an offline queue from settings.

Usage:
    from offline_queue.factory import create_coordinator, setup_logging

    setup_logging()
    components = create_coordinator()
    await components.coordinator.initialize(dispatch)
    components.monitor.start(components.settings.probe_interval_seconds)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from offline_queue.adapters.probe import TcpProbe
from offline_queue.adapters.storage import FileBackend
from offline_queue.config import Settings, get_settings
from offline_queue.core.connectivity import ConnectivityMonitor
from offline_queue.core.logging import configure_logging
from offline_queue.core.models import QueuedItem
from offline_queue.core.store import QueueStore
from offline_queue.services.coordinator import OfflineQueueCoordinator

if TYPE_CHECKING:
    from offline_queue.ports.connectivity import ConnectivitySignal
    from offline_queue.ports.storage import KeyValueBackend

logger = logging.getLogger(__name__)


@dataclass
class QueueComponents:
    """Container for the wired offline queue components.

    Attributes:
        settings: Settings the components were built from.
        backend: Durable key-value backend.
        store: Queue store on top of the backend.
        connectivity: Connectivity signal observed by the coordinator.
        monitor: The default monitor, or None when a custom signal was given.
        coordinator: The coordinator (not yet initialized).
    """

    settings: Settings
    backend: KeyValueBackend
    store: QueueStore
    connectivity: ConnectivitySignal
    monitor: ConnectivityMonitor | None
    coordinator: OfflineQueueCoordinator

    def new_item(
        self,
        target: str,
        *,
        method: str = "GET",
        payload: Any = None,
        headers: dict[str, str] | None = None,
        item_id: str | None = None,
    ) -> QueuedItem:
        """Build an item with a generated id and the configured attempt budget."""
        return QueuedItem(
            id=item_id or uuid.uuid4().hex,
            method=method,
            target=target,
            payload=payload,
            headers=headers or {},
            max_attempts=self.settings.default_max_attempts,
        )


def setup_logging(settings: Settings | None = None) -> None:
    """Configure root logging from ``log_level`` and ``log_format``."""
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
    )


def create_backend(settings: Settings) -> FileBackend:
    """Create the file backend rooted at ``settings.storage_path``."""
    return FileBackend(settings.storage_path.expanduser())


def create_monitor(settings: Settings) -> ConnectivityMonitor:
    """Create a connectivity monitor probing ``probe_host:probe_port``."""
    probe = TcpProbe(
        settings.probe_host,
        settings.probe_port,
        timeout=settings.probe_timeout_seconds,
    )
    return ConnectivityMonitor(
        probe=probe,
        debounce_seconds=settings.connectivity_debounce_seconds,
    )


def create_coordinator(
    settings: Settings | None = None,
    *,
    backend: KeyValueBackend | None = None,
    connectivity: ConnectivitySignal | None = None,
) -> QueueComponents:
    """Build a coordinator and its collaborators.

    Args:
        settings: Settings to use. Defaults to ``get_settings()``.
        backend: Backend override. Defaults to a ``FileBackend``.
        connectivity: Signal override. Defaults to a probing
            ``ConnectivityMonitor``.

    Returns:
        The wired components. The caller still has to ``initialize()`` the
        coordinator and, if desired, start monitor polling.
    """
    settings = settings or get_settings()
    backend = backend or create_backend(settings)

    monitor: ConnectivityMonitor | None = None
    if connectivity is None:
        monitor = create_monitor(settings)
        connectivity = monitor

    store = QueueStore(backend, key=settings.storage_key)
    coordinator = OfflineQueueCoordinator(store, connectivity)

    logger.debug("Created offline queue components (backend=%r)", backend)
    return QueueComponents(
        settings=settings,
        backend=backend,
        store=store,
        connectivity=connectivity,
        monitor=monitor,
        coordinator=coordinator,
    )
