"""Shared datetime helpers for the offline queue.

All timestamps handled by the queue are timezone-aware UTC. The persisted
wire format is ISO-8601; these helpers keep the conversion in one place.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware).

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from offline_queue.core.utils import utc_now
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def to_aware_utc(dt: datetime) -> datetime:
    """Convert any datetime to timezone-aware UTC.

    - If naive: assumes UTC, adds tzinfo
    - If aware: converts to UTC

    Args:
        dt: A datetime object (naive or timezone-aware).

    Returns:
        A timezone-aware datetime object in UTC.

    Example:
        >>> from datetime import datetime
        >>> aware = to_aware_utc(datetime(2024, 1, 15, 10, 30))
        >>> aware.tzinfo is not None
        True
        >>> aware.hour
        10
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string with a ``Z`` suffix.

    Example:
        >>> from datetime import datetime, timezone
        >>> to_iso_utc(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_aware_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso_utc(value: str) -> datetime:
    """Parse an ISO-8601 string into a timezone-aware UTC datetime.

    Accepts both ``Z`` and explicit offsets. Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_aware_utc(datetime.fromisoformat(value))
