"""Persist the committed value to a key-value storage backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pypouch._serialize import JSON_SERIALIZER, Serializer
from pypouch.exceptions import PouchConfigError, PouchSerializationError, PouchStorageError
from pypouch.state.plugin import CommitOrigin, Plugin
from pypouch.storage import KeyValueStorage, MemoryStorage

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Persist(Plugin[T], Generic[T]):
    """Load the stored value at construction and save after every commit.

    A missing key keeps the initial value. Unreadable or malformed stored data
    is logged and also falls back to the initial value. Write failures are
    logged; the in-memory value stays authoritative either way.
    """

    name = "persist"

    def __init__(self, key: str, *, storage: KeyValueStorage | None = None, serializer: Serializer | None = None) -> None:
        if not key:
            raise PouchConfigError("persist key must be non-empty")
        self.key = key
        self.backend: KeyValueStorage = storage if storage is not None else MemoryStorage()
        self._serializer = serializer or JSON_SERIALIZER
        self.last_error: Exception | None = None

    def initialize(self, value: T) -> T:
        try:
            stored = self.backend.read(self.key)
            if stored is None:
                return value
            restored: T = self._serializer.loads(stored)
        except (PouchStorageError, PouchSerializationError, OSError) as exc:
            self.last_error = exc
            _logger.warning("Failed to load %r from storage: %s", self.key, exc)
            return value
        _logger.debug("Restored %r from storage", self.key)
        return restored

    def setup(self, pouch: Pouch[T]) -> None:
        pouch.attach("storage", self)

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        try:
            self.backend.write(self.key, self._serializer.dumps(new_value))
        except (PouchStorageError, PouchSerializationError, OSError) as exc:
            self.last_error = exc
            _logger.warning("Failed to save %r to storage: %s", self.key, exc)
        else:
            self.last_error = None

    def info(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "type": getattr(self.backend, "kind", type(self.backend).__name__),
            "last_error": repr(self.last_error) if self.last_error else None,
        }

    def clear(self) -> None:
        """Remove the persisted value; the in-memory value is untouched."""
        try:
            self.backend.remove(self.key)
        except (PouchStorageError, OSError) as exc:
            self.last_error = exc
            _logger.error("Failed to clear %r from storage: %s", self.key, exc)


def persist(key: str, *, storage: KeyValueStorage | None = None, serializer: Serializer | None = None) -> Persist[T]:
    """Create a persistence plugin storing the value under *key*."""
    return Persist(key, storage=storage, serializer=serializer)
