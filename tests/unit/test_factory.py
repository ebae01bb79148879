"""Tests for the component factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from offline_queue.adapters.probe import TcpProbe
from offline_queue.adapters.storage import FileBackend, InMemoryBackend
from offline_queue.config import Settings
from offline_queue.core.connectivity import ConnectivityMonitor
from offline_queue.factory import create_coordinator, create_monitor, setup_logging
from offline_queue.services.coordinator import OfflineQueueCoordinator


class TestCreateCoordinator:
    """Tests for create_coordinator()."""

    def test_defaults_from_settings(self, test_settings: Settings) -> None:
        components = create_coordinator()

        assert components.settings is test_settings
        assert isinstance(components.backend, FileBackend)
        assert components.backend.directory == test_settings.storage_path
        assert components.store.key == test_settings.storage_key
        assert isinstance(components.monitor, ConnectivityMonitor)
        assert components.connectivity is components.monitor
        assert isinstance(components.coordinator, OfflineQueueCoordinator)
        assert not components.coordinator.is_initialized

    def test_custom_backend_and_signal(self, test_settings: Settings) -> None:
        backend = InMemoryBackend()
        signal = MagicMock()
        signal.is_connected = True

        components = create_coordinator(test_settings, backend=backend, connectivity=signal)

        assert components.backend is backend
        assert components.store.backend is backend
        assert components.connectivity is signal
        assert components.monitor is None

    def test_create_monitor_uses_probe_settings(self) -> None:
        settings = Settings(
            probe_host="10.0.0.1",
            probe_port=8443,
            probe_timeout_seconds=1.5,
            connectivity_debounce_seconds=0.25,
        )
        with patch("offline_queue.factory.TcpProbe", wraps=TcpProbe) as probe_cls:
            monitor = create_monitor(settings)

        probe_cls.assert_called_once_with("10.0.0.1", 8443, timeout=1.5)
        assert monitor.debounce_seconds == 0.25

    def test_new_item_uses_configured_budget(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"default_max_attempts": 7})
        components = create_coordinator(settings, backend=InMemoryBackend())

        item = components.new_item("https://example.com/a", method="put", payload={"x": 1})
        other = components.new_item("https://example.com/b", item_id="fixed")

        assert item.max_attempts == 7
        assert item.method == "PUT"
        assert item.payload == {"x": 1}
        assert item.id != other.id
        assert other.id == "fixed"

    @pytest.mark.asyncio
    async def test_wired_coordinator_round_trip(self, test_settings: Settings) -> None:
        """Components built by the factory persist through the file backend."""
        components = create_coordinator(test_settings)
        assert components.monitor is not None
        components.monitor.set_status(False)

        await components.coordinator.initialize(lambda item: None)
        await components.coordinator.enqueue(components.new_item("https://example.com"))

        raw = await components.backend.get_string(test_settings.storage_key)
        assert raw is not None
        await components.coordinator.dispose()
        await components.monitor.close()


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_applies_level_and_format(self) -> None:
        settings = Settings(log_level="WARNING", log_format="json")
        with patch("offline_queue.factory.configure_logging") as configure:
            setup_logging(settings)
        configure.assert_called_once_with(level="WARNING", json_format=True)

    def test_defaults_to_global_settings(self, test_settings: Settings) -> None:
        with patch("offline_queue.factory.configure_logging") as configure:
            setup_logging()
        configure.assert_called_once_with(level="DEBUG", json_format=False)
