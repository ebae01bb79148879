"""Configuration system for the offline queue."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Offline Queue Configuration."""

    # Storage
    storage_path: Path = Field(
        default=Path("./.offline-queue"),
        description="Directory holding the file-backed key-value store",
    )
    storage_key: str = Field(
        default="offline_queue.items",
        min_length=1,
        description="Key under which the encoded queue is persisted",
    )

    # Retry policy
    default_max_attempts: int = Field(
        default=3,
        ge=0,
        description="Retries allowed after the first attempt (total attempts = value + 1)",
    )

    # Connectivity
    connectivity_debounce_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Settle time before a connectivity change is published",
    )
    probe_host: str = Field(
        default="1.1.1.1",
        description="Host used by the TCP reachability probe",
    )
    probe_port: int = Field(
        default=443,
        ge=1,
        le=65535,
        description="Port used by the TCP reachability probe",
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        gt=0.0,
        description="Connection timeout for the reachability probe",
    )
    probe_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Seconds between periodic reachability probes",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Console log format",
    )

    model_config = {
        "env_prefix": "OFFLINE_QUEUE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Settings singleton with dependency injection support
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance (lazy-loaded singleton).

    Returns:
        The Settings instance.

    Example:
        from offline_queue.config import get_settings
        settings = get_settings()
        print(settings.storage_path)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def override_settings(new_settings: Settings) -> None:
    """Override the settings instance (for testing).

    Args:
        new_settings: The new Settings instance to use.
    """
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    """Reset settings to None (forces reload on next get_settings call)."""
    global _settings
    _settings = None
