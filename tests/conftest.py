"""Pytest fixtures for offline queue tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from offline_queue.adapters.storage import FileBackend, InMemoryBackend
from offline_queue.config import Settings, override_settings, reset_settings
from offline_queue.core.connectivity import ConnectivityMonitor
from offline_queue.core.store import QueueStore
from offline_queue.services.coordinator import OfflineQueueCoordinator
from tests.helpers import RecordingDispatcher

# ---------------------------------------------------------------------------
# Basic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path: Path) -> Generator[Settings, None, None]:
    """Provide test settings with temp storage."""
    settings = Settings(
        storage_path=tmp_path / "queue",
        connectivity_debounce_seconds=0.0,
        log_level="DEBUG",
    )
    override_settings(settings)
    yield settings
    reset_settings()


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    """Provide an empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def file_backend(tmp_path: Path) -> FileBackend:
    """Provide a file backend in a temp directory."""
    return FileBackend(tmp_path / "queue")


@pytest.fixture
def store(memory_backend: InMemoryBackend) -> QueueStore:
    """Provide a store on the in-memory backend."""
    return QueueStore(memory_backend)


@pytest.fixture
def monitor() -> ConnectivityMonitor:
    """Provide an online monitor that notifies without debounce."""
    return ConnectivityMonitor(debounce_seconds=0.0)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """Provide a recording dispatch function."""
    return RecordingDispatcher()


@pytest.fixture
def coordinator(store: QueueStore, monitor: ConnectivityMonitor) -> OfflineQueueCoordinator:
    """Provide an uninitialized coordinator."""
    return OfflineQueueCoordinator(store, monitor)
