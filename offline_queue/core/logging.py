"""Secure structured logging for the offline queue.

Queued items frequently carry credentials in their headers (bearer tokens,
API keys). Formatters in this module mask those values and tag lines emitted
during a flush cycle with the cycle id.

Features:
    - Sensitive data masking (bearer tokens, API keys, passwords)
    - JSON structured logging format
    - Flush context integration ([flush=xxx] prefix)
    - Configurable log levels and formats
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

# Patterns to mask in logs
SENSITIVE_PATTERNS = [
    (re.compile(r"bearer\s+[\w\-.~+/]+=*", re.I), "Bearer ***MASKED***"),
    (re.compile(r'api[_-]?key["\']?\s*[:=]\s*["\']?[\w-]+', re.I), "api_key=***MASKED***"),
    (re.compile(r'password["\']?\s*[:=]\s*["\']?[^\s"\']+', re.I), "password=***MASKED***"),
]


def mask_sensitive_data(message: str) -> str:
    """Apply every sensitive-data pattern to a message."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def _get_flush_id() -> str | None:
    from offline_queue.core.tracing import get_current_context

    ctx = get_current_context()
    return ctx.cycle_id if ctx else None


class SecureFormatter(logging.Formatter):
    """Formatter that masks sensitive data and includes flush context."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        include_flush_context: bool = True,
    ) -> None:
        """Initialize the secure formatter.

        Args:
            fmt: Format string for log messages.
            datefmt: Date format string.
            include_flush_context: Whether to include the [flush=xxx] prefix.
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.include_flush_context = include_flush_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record and mask sensitive data."""
        message = super().format(record)

        if self.include_flush_context:
            flush_id = _get_flush_id()
            if flush_id:
                prefix = f"[flush={flush_id}] "
                # "2024-01-15 10:30:00 - logger - LEVEL - message"
                parts = message.split(" - ", 3)
                if len(parts) == 4:
                    message = f"{parts[0]} - {parts[1]} - {parts[2]} - {prefix}{parts[3]}"
                else:
                    message = prefix + message

        return mask_sensitive_data(message)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with flush context."""

    def __init__(self, include_flush_context: bool = True) -> None:
        super().__init__()
        self.include_flush_context = include_flush_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with sensitive data masked."""
        log_data: dict[str, str | None] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_flush_context:
            flush_id = _get_flush_id()
            if flush_id:
                log_data["flush_id"] = flush_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return mask_sensitive_data(json.dumps(log_data))


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    mask_sensitive: bool = True,
    include_flush_context: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_format: Use JSON format for structured logging.
        mask_sensitive: Mask sensitive data in logs.
        include_flush_context: Include [flush=xxx] in log messages.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = JSONFormatter(include_flush_context=include_flush_context)
    elif mask_sensitive:
        formatter = SecureFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            include_flush_context=include_flush_context,
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
