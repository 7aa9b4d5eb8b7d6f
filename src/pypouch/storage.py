"""Key-value storage backends used by the persistence plugin."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from pypouch.exceptions import PouchStorageError

_logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class KeyValueStorage(Protocol):
    """Narrow read/write contract required by ``persist``."""

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, data: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage; contents are lost on restart."""

    kind = "memory"

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._items.get(key)

    def write(self, key: str, data: str) -> None:
        self._items[key] = data

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._items


class FileStorage:
    """One UTF-8 file per key under ``directory``.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash never leaves a half-written value behind.
    """

    kind = "file"

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not key:
            raise PouchStorageError("storage key must be non-empty", key=key)
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PouchStorageError(f"Failed to read {path}: {exc}", key=key) from exc

    def write(self, key: str, data: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".pouch-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PouchStorageError(f"Failed to write {path}: {exc}", key=key) from exc
        _logger.debug("Wrote %d chars to %s", len(data), path)

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PouchStorageError(f"Failed to remove {path}: {exc}", key=key) from exc
