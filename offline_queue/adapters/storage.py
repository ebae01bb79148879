"""Key-value backends for queue persistence.

``FileBackend`` keeps one file per key inside a directory. Writes go to a
temporary file first and are moved into place with ``os.replace()``, so a
crash mid-write leaves the previous value intact rather than a truncated one.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import uuid
from pathlib import Path

from offline_queue.core.errors import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")
VALUE_SUFFIX = ".json"


class InMemoryBackend:
    """Process-local backend. Values are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get_string(self, key: str) -> str | None:
        return self._values.get(key)

    async def set_string(self, key: str, value: str) -> None:
        self._values[key] = value
        self.writes += 1

    def __repr__(self) -> str:
        return f"InMemoryBackend(keys={sorted(self._values)})"


class FileBackend:
    """File-per-key backend rooted at a directory.

    Blocking file I/O runs in a worker thread via ``asyncio.to_thread`` so
    the event loop stays responsive while the queue persists.

    Example:
        backend = FileBackend(Path("~/.offline-queue").expanduser())
        await backend.set_string("offline_queue.items", "[]")
    """

    def __init__(self, directory: Path) -> None:
        """Initialize the backend.

        Args:
            directory: Directory for value files. Created on first write.
        """
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Resolve the file that stores a key.

        Raises:
            ConfigurationError: If the key is not a safe file name.
        """
        if not _KEY_PATTERN.match(key):
            raise ConfigurationError(
                f"Invalid storage key: {key!r}. Must start with a letter or digit "
                "and contain only letters, digits, dot, dash or underscore."
            )
        return self._directory / f"{key}{VALUE_SUFFIX}"

    async def get_string(self, key: str) -> str | None:
        path = self.path_for(key)
        return await asyncio.to_thread(self._read, path)

    async def set_string(self, key: str, value: str) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, value)

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read {path.name}: {e}") from e

    @staticmethod
    def _write(path: Path, value: str) -> None:
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(str(tmp_path), str(path))
        except OSError as e:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_path.name)
            raise PersistenceError(f"Failed to write {path.name}: {e}") from e

    def __repr__(self) -> str:
        return f"FileBackend(directory={str(self._directory)!r})"
