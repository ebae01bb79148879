"""Protocol interface for the durable key-value backend.

The queue persists itself as a single string value under one well-known
key, so the backend contract is two methods.
"""

from __future__ import annotations

from typing import Protocol


class KeyValueBackend(Protocol):
    """Protocol for durable string storage.

    Implementations: ``InMemoryBackend`` (tests, ephemeral use) and
    ``FileBackend`` (one file per key on local disk).
    """

    async def get_string(self, key: str) -> str | None:
        """Read the value stored under a key.

        Args:
            key: Storage key.

        Returns:
            The stored string, or None if the key has never been written.

        Raises:
            PersistenceError: If the backend cannot be read.
        """
        ...

    async def set_string(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value.

        Args:
            key: Storage key.
            value: String to store.

        Raises:
            PersistenceError: If the backend cannot be written.
        """
        ...
