"""Unit tests for QueueStore and the persisted queue codec.

Tests cover:
- FIFO ordering and id-based identity
- Replace-in-place semantics
- Persist / load round-trip through a backend
- Malformed persisted state
- Backend failures never raising out of the store
"""

from __future__ import annotations

import json
import logging

import pytest

from offline_queue.adapters.storage import InMemoryBackend
from offline_queue.core.errors import DuplicateItemError, QueueDecodeError
from offline_queue.core.store import DEFAULT_STORAGE_KEY, QueueStore, decode_items, encode_items
from tests.helpers import FailingBackend, make_item

# =============================================================================
# Codec
# =============================================================================


class TestCodec:
    """Tests for encode_items / decode_items."""

    def test_encode_preserves_order(self) -> None:
        """Encoded records should appear in queue order."""
        raw = encode_items([make_item("a"), make_item("b"), make_item("c")])
        assert [record["id"] for record in json.loads(raw)] == ["a", "b", "c"]

    def test_decode_applies_defaults_for_absent_optional_fields(self) -> None:
        """Only id and target are required in a persisted record."""
        raw = json.dumps([{"id": "a", "target": "https://example.com"}])
        [item] = decode_items(raw)
        assert item.method == "GET"
        assert item.headers == {}
        assert item.max_attempts == 3
        assert item.attempt_count == 0

    def test_decode_round_trip(self) -> None:
        """Decoding an encoded list yields equal items."""
        items = [make_item("a", attempt_count=1), make_item("b", headers={"X-Trace": "1"})]
        assert decode_items(encode_items(items)) == items

    def test_decode_invalid_json(self) -> None:
        with pytest.raises(QueueDecodeError, match="not valid JSON"):
            decode_items("{not json")

    def test_decode_non_array(self) -> None:
        with pytest.raises(QueueDecodeError, match="JSON array"):
            decode_items('{"id": "a"}')

    def test_decode_non_object_record(self) -> None:
        with pytest.raises(QueueDecodeError, match="Record 1 must be an object"):
            decode_items(json.dumps([{"id": "a", "target": "t"}, 42]))

    def test_decode_invalid_record(self) -> None:
        with pytest.raises(QueueDecodeError, match="Record 0 is invalid"):
            decode_items(json.dumps([{"id": "a"}]))

    def test_decode_skips_duplicate_ids(self, caplog: pytest.LogCaptureFixture) -> None:
        """Later duplicates of an id are skipped with a warning."""
        raw = json.dumps(
            [
                {"id": "a", "target": "first"},
                {"id": "b", "target": "t"},
                {"id": "a", "target": "second"},
            ]
        )
        with caplog.at_level(logging.WARNING):
            items = decode_items(raw)

        assert [(item.id, item.target) for item in items] == [("a", "first"), ("b", "t")]
        assert "duplicate" in caplog.text.lower()


# =============================================================================
# In-memory operations
# =============================================================================


class TestStoreOperations:
    """Tests for append, remove, replace and snapshot."""

    def test_append_preserves_fifo_order(self, store: QueueStore) -> None:
        for item_id in ("a", "b", "c"):
            store.append(make_item(item_id))
        assert [item.id for item in store.snapshot()] == ["a", "b", "c"]
        assert len(store) == 3

    def test_append_duplicate_id_raises(self, store: QueueStore) -> None:
        store.append(make_item("a"))
        with pytest.raises(DuplicateItemError) as exc_info:
            store.append(make_item("a", target="other"))
        assert exc_info.value.item_id == "a"
        assert len(store) == 1

    def test_remove_by_id(self, store: QueueStore) -> None:
        """Removal matches on id, not object identity."""
        store.append(make_item("a"))
        store.append(make_item("b"))

        assert store.remove(make_item("a", attempt_count=2)) is True
        assert [item.id for item in store] == ["b"]

    def test_remove_absent_is_noop(self, store: QueueStore) -> None:
        store.append(make_item("a"))
        assert store.remove(make_item("missing")) is False
        assert len(store) == 1

    def test_replace_keeps_position(self, store: QueueStore) -> None:
        for item_id in ("a", "b", "c"):
            store.append(make_item(item_id))

        original = store.get("b")
        assert original is not None
        updated = original.with_incremented_attempt()

        assert store.replace(original, updated) is True
        assert [item.id for item in store] == ["a", "b", "c"]
        assert store.get("b") == updated

    def test_replace_absent_returns_false(self, store: QueueStore) -> None:
        item = make_item("a")
        assert store.replace(item, item.with_incremented_attempt()) is False
        assert len(store) == 0

    def test_replace_with_different_id_raises(self, store: QueueStore) -> None:
        store.append(make_item("a"))
        with pytest.raises(ValueError, match="does not match"):
            store.replace(make_item("a"), make_item("b"))

    def test_snapshot_is_immutable_copy(self, store: QueueStore) -> None:
        """Mutating the store after a snapshot does not change the snapshot."""
        store.append(make_item("a"))
        snapshot = store.snapshot()
        store.append(make_item("b"))

        assert isinstance(snapshot, tuple)
        assert [item.id for item in snapshot] == ["a"]

    def test_contains_accepts_item_or_id(self, store: QueueStore) -> None:
        store.append(make_item("a"))
        assert "a" in store
        assert make_item("a") in store
        assert "b" not in store
        assert 42 not in store

    def test_get_missing_returns_none(self, store: QueueStore) -> None:
        assert store.get("missing") is None

    def test_clear_leaves_backend_alone(
        self, store: QueueStore, memory_backend: InMemoryBackend
    ) -> None:
        store.append(make_item("a"))
        store.clear()
        assert len(store) == 0
        assert memory_backend.writes == 0


# =============================================================================
# Persistence
# =============================================================================


class TestStorePersistence:
    """Tests for persist() and load_persisted()."""

    @pytest.mark.asyncio
    async def test_persist_and_load_round_trip(self, memory_backend: InMemoryBackend) -> None:
        """A fresh store on the same backend restores items in order."""
        first = QueueStore(memory_backend)
        first.append(make_item("a"))
        first.append(make_item("b", attempt_count=1))
        assert await first.persist() is True

        second = QueueStore(memory_backend)
        assert await second.load_persisted() == 2
        assert second.snapshot() == first.snapshot()

    @pytest.mark.asyncio
    async def test_persist_uses_well_known_key(
        self, store: QueueStore, memory_backend: InMemoryBackend
    ) -> None:
        store.append(make_item("a"))
        await store.persist()

        raw = await memory_backend.get_string(DEFAULT_STORAGE_KEY)
        assert raw is not None
        assert json.loads(raw)[0]["id"] == "a"

    @pytest.mark.asyncio
    async def test_custom_key(self, memory_backend: InMemoryBackend) -> None:
        store = QueueStore(memory_backend, key="custom.queue")
        store.append(make_item("a"))
        await store.persist()

        assert await memory_backend.get_string("custom.queue") is not None
        assert await memory_backend.get_string(DEFAULT_STORAGE_KEY) is None

    @pytest.mark.asyncio
    async def test_load_missing_value_yields_empty(self, store: QueueStore) -> None:
        assert await store.load_persisted() == 0
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_load_blank_value_yields_empty(self) -> None:
        store = QueueStore(InMemoryBackend({DEFAULT_STORAGE_KEY: "   "}))
        assert await store.load_persisted() == 0

    @pytest.mark.asyncio
    async def test_load_malformed_value_yields_empty(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Malformed state is logged at error level, never raised."""
        store = QueueStore(InMemoryBackend({DEFAULT_STORAGE_KEY: "[{broken"}))
        store.append(make_item("stale"))

        with caplog.at_level(logging.ERROR):
            loaded = await store.load_persisted()

        assert loaded == 0
        assert len(store) == 0
        assert "malformed" in caplog.text.lower()

    @pytest.mark.asyncio
    async def test_load_read_failure_yields_empty(self) -> None:
        store = QueueStore(FailingBackend(fail_reads=True))
        assert await store.load_persisted() == 0
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_persist_failure_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing backend write returns False and keeps memory authoritative."""
        store = QueueStore(FailingBackend(fail_writes=True))
        store.append(make_item("a"))

        with caplog.at_level(logging.ERROR):
            assert await store.persist() is False

        assert len(store) == 1
        assert "Failed to persist" in caplog.text
