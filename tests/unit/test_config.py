"""Tests for configuration system."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from offline_queue.config import (
    Settings,
    get_settings,
    override_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the singleton and environment clean between tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("STORAGE_PATH", "STORAGE_KEY", "DEFAULT_MAX_ATTEMPTS", "LOG_FORMAT"):
        monkeypatch.delenv(f"OFFLINE_QUEUE_{name}", raising=False)
    reset_settings()
    yield
    reset_settings()


def test_default_settings() -> None:
    """Test default settings values."""
    s = Settings()
    assert s.storage_path == Path("./.offline-queue")
    assert s.storage_key == "offline_queue.items"
    assert s.default_max_attempts == 3
    assert s.connectivity_debounce_seconds == 0.5
    assert s.probe_host == "1.1.1.1"
    assert s.probe_port == 443
    assert s.probe_timeout_seconds == 3.0
    assert s.probe_interval_seconds == 30.0
    assert s.log_level == "INFO"
    assert s.log_format == "text"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test settings read OFFLINE_QUEUE_ prefixed environment variables."""
    monkeypatch.setenv("OFFLINE_QUEUE_DEFAULT_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("OFFLINE_QUEUE_STORAGE_PATH", "/var/lib/queue")
    monkeypatch.setenv("OFFLINE_QUEUE_LOG_FORMAT", "json")

    s = Settings()
    assert s.default_max_attempts == 5
    assert s.storage_path == Path("/var/lib/queue")
    assert s.log_format == "json"


def test_settings_from_env_file(tmp_path: Path) -> None:
    """Test settings read a .env file in the working directory."""
    (tmp_path / ".env").write_text("OFFLINE_QUEUE_STORAGE_KEY=from.dotenv\n")
    assert Settings().storage_key == "from.dotenv"


@pytest.mark.parametrize(
    "field,value",
    [
        ("default_max_attempts", -1),
        ("connectivity_debounce_seconds", -0.1),
        ("probe_port", 0),
        ("probe_port", 70000),
        ("probe_timeout_seconds", 0),
        ("probe_interval_seconds", 0),
        ("storage_key", ""),
        ("log_format", "xml"),
    ],
)
def test_invalid_values_rejected(field: str, value: object) -> None:
    """Test out-of-range values fail validation."""
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_get_settings_is_singleton() -> None:
    assert get_settings() is get_settings()


def test_override_and_reset(tmp_path: Path) -> None:
    """Test override_settings replaces the singleton until reset."""
    custom = Settings(storage_path=tmp_path / "custom")
    override_settings(custom)
    assert get_settings() is custom
    assert get_settings().storage_path == tmp_path / "custom"

    reset_settings()
    assert get_settings() is not custom
