"""Durable queue store: ordered pending items plus their persisted form.

The in-memory list is authoritative. ``persist()`` mirrors it to the
key-value backend as a JSON array of item records; ``load_persisted()``
restores it on startup. Persistence is best-effort and write-after-mutate:
a crash between a mutation and the next ``persist()`` loses that mutation.

Items are matched by ``id`` rather than by object identity so that
behavior stays well-defined for items that crossed a serialization
boundary.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from offline_queue.core.errors import DuplicateItemError, QueueDecodeError
from offline_queue.core.models import QueuedItem

if TYPE_CHECKING:
    from offline_queue.ports.storage import KeyValueBackend

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "offline_queue.items"


def encode_items(items: Iterable[QueuedItem]) -> str:
    """Encode items as a JSON array of records, preserving order."""
    return json.dumps([item.to_record() for item in items], ensure_ascii=False)


def decode_items(raw: str) -> list[QueuedItem]:
    """Decode a persisted JSON array of item records.

    Args:
        raw: The persisted string.

    Returns:
        Items in persisted order. Later duplicates of an id are skipped.

    Raises:
        QueueDecodeError: If the value is not a JSON array of valid records.
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise QueueDecodeError(f"Persisted queue is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise QueueDecodeError(
            f"Persisted queue must be a JSON array, got {type(data).__name__}"
        )

    items: list[QueuedItem] = []
    seen: set[str] = set()
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise QueueDecodeError(
                f"Record {index} must be an object, got {type(record).__name__}"
            )
        try:
            item = QueuedItem.from_record(record)
        except (ValidationError, ValueError) as e:
            raise QueueDecodeError(f"Record {index} is invalid: {e}") from e

        if item.id in seen:
            logger.warning("Skipping duplicate persisted item %s", item.id)
            continue
        seen.add(item.id)
        items.append(item)
    return items


class QueueStore:
    """Ordered collection of pending ``QueuedItem`` records.

    Only the coordinator mutates a store. Mutations are limited to
    ``append``, ``remove`` and ``replace`` so FIFO order is preserved.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        """Initialize the store.

        Args:
            backend: Durable key-value backend.
            key: Key under which the encoded queue is stored.
        """
        self._backend = backend
        self._key = key
        self._items: list[QueuedItem] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueuedItem]:
        return iter(self.snapshot())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, QueuedItem):
            return self._index_of(item.id) != -1
        if isinstance(item, str):
            return self._index_of(item) != -1
        return False

    def get(self, item_id: str) -> QueuedItem | None:
        index = self._index_of(item_id)
        return self._items[index] if index != -1 else None

    def append(self, item: QueuedItem) -> None:
        """Add an item to the tail.

        Raises:
            DuplicateItemError: If an item with the same id is queued.
        """
        if self._index_of(item.id) != -1:
            raise DuplicateItemError(item.id)
        self._items.append(item)

    def remove(self, item: QueuedItem) -> bool:
        """Remove the entry with ``item.id``. Returns False if absent."""
        index = self._index_of(item.id)
        if index == -1:
            return False
        del self._items[index]
        return True

    def replace(self, item: QueuedItem, updated: QueuedItem) -> bool:
        """Swap the entry with ``item.id`` for ``updated`` at the same position.

        Returns:
            True if replaced, False if ``item`` is no longer queued.

        Raises:
            ValueError: If ``updated`` has a different id.
        """
        if updated.id != item.id:
            raise ValueError(f"Replacement id {updated.id!r} does not match {item.id!r}")
        index = self._index_of(item.id)
        if index == -1:
            return False
        self._items[index] = updated
        return True

    def snapshot(self) -> tuple[QueuedItem, ...]:
        """Immutable ordered copy, safe to iterate while the store changes."""
        return tuple(self._items)

    def clear(self) -> None:
        """Drop every in-memory item. Persisted state is left alone."""
        self._items.clear()

    async def persist(self) -> bool:
        """Write the full ordered list to the backend.

        Failures are logged and swallowed; the in-memory list stays
        authoritative until the next successful persist.

        Returns:
            True if the write succeeded.
        """
        try:
            encoded = encode_items(self._items)
            await self._backend.set_string(self._key, encoded)
        except Exception:
            logger.error(
                "Failed to persist offline queue (%d items)", len(self._items), exc_info=True
            )
            return False
        logger.debug("Persisted %d queued item(s)", len(self._items))
        return True

    async def load_persisted(self) -> int:
        """Replace the in-memory list with the persisted one.

        A missing, empty, or malformed value yields an empty queue. Errors
        are logged, never raised.

        Returns:
            Number of items loaded.
        """
        try:
            raw = await self._backend.get_string(self._key)
        except Exception:
            logger.error("Failed to read persisted offline queue", exc_info=True)
            self._items = []
            return 0

        if raw is None or not raw.strip():
            self._items = []
            return 0

        try:
            items = decode_items(raw)
        except QueueDecodeError as e:
            logger.error("Discarding malformed persisted offline queue: %s", e)
            self._items = []
            return 0

        self._items = items
        return len(items)

    def _index_of(self, item_id: str) -> int:
        for index, queued in enumerate(self._items):
            if queued.id == item_id:
                return index
        return -1

    def __repr__(self) -> str:
        return f"QueueStore(key={self._key!r}, pending={len(self._items)})"
