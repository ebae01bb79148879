"""Custom exceptions for the offline queue."""

from __future__ import annotations


class OfflineQueueError(Exception):
    """Base exception for all offline queue errors."""

    pass


class DispatchError(OfflineQueueError):
    """Raised (or reported) when dispatching a queued item fails.

    Non-queue exceptions raised by a dispatch function are wrapped in this
    type before they reach an ``ItemDropped`` event, so observers always see
    a uniform error shape with the original available as ``cause``.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize DispatchError.

        Args:
            message: Error description.
            status_code: Optional protocol status (e.g. HTTP status code).
            cause: The underlying exception, if any.
        """
        self.message = message
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code})"


class NoConnectivityError(DispatchError):
    """Raised when there is no network connectivity for a dispatch."""

    def __init__(self, message: str = "No network connectivity") -> None:
        super().__init__(message)


class PersistenceError(OfflineQueueError):
    """Raised when the durable backend cannot be read or written."""

    pass


class QueueDecodeError(PersistenceError):
    """Raised when a persisted queue value is malformed."""

    pass


class DuplicateItemError(OfflineQueueError):
    """Raised when an item id is already present in the queue."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item already queued: {item_id}")


class ItemNotFoundError(OfflineQueueError):
    """Raised when an item id is not present in the queue."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class ConfigurationError(OfflineQueueError):
    """Raised when configuration is invalid."""

    pass
