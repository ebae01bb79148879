"""Command line tools for inspecting and managing a persisted offline queue.

These commands operate on the persisted state only; they never dispatch.
Do not run them against a queue that a live process is flushing, since the
store assumes a single writer.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from offline_queue.core.errors import ItemNotFoundError, OfflineQueueError
from offline_queue.core.models import QueuedItem
from offline_queue.core.utils import to_iso_utc, utc_now

if TYPE_CHECKING:
    from offline_queue.core.store import QueueStore

logger = logging.getLogger(__name__)


def _configure(args: argparse.Namespace) -> QueueStore:
    """Build the store for the CLI from settings and command line overrides."""
    from offline_queue.adapters.storage import FileBackend
    from offline_queue.config import get_settings
    from offline_queue.core.store import QueueStore

    settings = get_settings()
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    storage_path = getattr(args, "storage_path", None) or settings.storage_path
    backend = FileBackend(Path(storage_path).expanduser())
    return QueueStore(backend, key=getattr(args, "key", None) or settings.storage_key)


async def _load_strict(store: QueueStore) -> list[QueuedItem]:
    """Load persisted items, raising on malformed state instead of discarding it."""
    from offline_queue.core.store import decode_items

    raw = await store.backend.get_string(store.key)
    if raw is None or not raw.strip():
        return []
    items = decode_items(raw)
    for item in items:
        store.append(item)
    return items


def _format_age(item: QueuedItem) -> str:
    seconds = int((utc_now() - item.enqueued_at).total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def run_status(args: argparse.Namespace) -> int:
    """Print a summary of the persisted queue.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = _configure(args)
    try:
        items = asyncio.run(_load_strict(store))
    except OfflineQueueError as e:
        logger.error(f"Status failed: {e}", exc_info=getattr(args, "verbose", False))
        print(f"Error: {e}")
        return 1

    print(f"Storage: {store.backend!r}")
    print(f"Pending items: {len(items)}")
    if items:
        oldest = items[0]
        retrying = sum(1 for item in items if item.attempt_count > 0)
        print(f"Oldest item: {oldest.id} (queued {_format_age(oldest)} ago)")
        print(f"Items with failed attempts: {retrying}")
    return 0


def run_list(args: argparse.Namespace) -> int:
    """List persisted items in dispatch order.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = _configure(args)
    try:
        items = asyncio.run(_load_strict(store))
    except OfflineQueueError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps([item.to_record() for item in items], indent=2))
        return 0

    if not items:
        print("Queue is empty.")
        return 0

    for position, item in enumerate(items, start=1):
        print(
            f"{position:>3}. {item.id}  {item.method} {item.target}  "
            f"attempts={item.attempt_count}/{item.max_attempts + 1}  "
            f"queued={to_iso_utc(item.enqueued_at)}"
        )
    return 0


def run_drop(args: argparse.Namespace) -> int:
    """Remove a single item from the persisted queue.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = _configure(args)

    async def _drop() -> bool:
        await _load_strict(store)
        item = store.get(args.item_id)
        if item is None:
            raise ItemNotFoundError(args.item_id)
        store.remove(item)
        return await store.persist()

    try:
        persisted = asyncio.run(_drop())
    except OfflineQueueError as e:
        print(f"Error: {e}")
        return 1

    if not persisted:
        print(f"Error: failed to persist removal of {args.item_id}")
        return 1

    print(f"Dropped {args.item_id}. {len(store)} item(s) remaining.")
    return 0


def run_purge(args: argparse.Namespace) -> int:
    """Remove every item from the persisted queue.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = _configure(args)

    try:
        items = asyncio.run(_load_strict(store))
    except OfflineQueueError as e:
        print(f"Error: {e}")
        return 1

    if not items:
        print("Queue is already empty.")
        return 0

    if not args.yes:
        response = input(f"Permanently discard {len(items)} queued item(s)? [y/N] ").strip().lower()
        if response not in ("y", "yes"):
            print("Aborted.")
            return 0

    store.clear()
    if not asyncio.run(store.persist()):
        print("Error: failed to persist the empty queue")
        return 1

    print(f"Purged {len(items)} item(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``offline-queue`` command."""
    parser = argparse.ArgumentParser(
        prog="offline-queue",
        description="Inspect and manage a persisted offline queue",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--storage-path",
        type=Path,
        default=None,
        help="Queue storage directory (default: OFFLINE_QUEUE_STORAGE_PATH)",
    )
    parser.add_argument(
        "--key",
        default=None,
        help="Storage key of the queue (default: OFFLINE_QUEUE_STORAGE_KEY)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    subparsers.add_parser("status", help="Show a summary of the queue")

    list_parser = subparsers.add_parser("list", help="List queued items in order")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Print persisted records as JSON",
    )

    drop_parser = subparsers.add_parser("drop", help="Remove one item by id")
    drop_parser.add_argument("item_id", help="Id of the item to remove")

    purge_parser = subparsers.add_parser("purge", help="Remove every queued item")
    purge_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompt",
    )

    return parser


def main() -> NoReturn:
    """Main entry point with subcommand support."""
    parser = build_parser()
    args = parser.parse_args()

    if args.version:
        from offline_queue import __version__

        print(f"offline-queue {__version__}")
        sys.exit(0)

    if args.command == "status" or args.command is None:
        sys.exit(run_status(args))
    elif args.command == "list":
        sys.exit(run_list(args))
    elif args.command == "drop":
        sys.exit(run_drop(args))
    elif args.command == "purge":
        sys.exit(run_purge(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
