"""Shared test helpers for offline queue tests."""

from __future__ import annotations

from typing import Any

from offline_queue.adapters.storage import InMemoryBackend
from offline_queue.core.models import QueuedItem


def make_item(item_id: str = "item-1", **overrides: Any) -> QueuedItem:
    """Build a QueuedItem with sensible test defaults."""
    fields: dict[str, Any] = {
        "id": item_id,
        "method": "POST",
        "target": f"https://api.example.com/items/{item_id}",
        "payload": {"id": item_id},
    }
    fields.update(overrides)
    return QueuedItem(**fields)


class RecordingDispatcher:
    """Async dispatch function that records calls and fails on demand."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failing: set[str] = set()

    async def __call__(self, item: QueuedItem) -> None:
        self.calls.append(item.id)
        if item.id in self.failing:
            raise ConnectionError(f"send failed for {item.id}")


class FailingBackend(InMemoryBackend):
    """Backend whose reads and/or writes raise."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = True) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def get_string(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return await super().get_string(key)

    async def set_string(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().set_string(key, value)
