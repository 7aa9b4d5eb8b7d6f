"""Bounded linear undo/redo over committed values."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Generic, TypeVar

from pypouch.exceptions import PouchConfigError
from pypouch.state.plugin import CommitOrigin, Plugin

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class History(Plugin[T], Generic[T]):
    """Record user commits so they can be undone and redone.

    ``past`` holds at most ``max_size`` previous values, oldest evicted first.
    ``future`` is cleared by every user commit. Commits made by :meth:`undo`,
    :meth:`redo` or remote seeding are never recorded.
    """

    name = "history"

    def __init__(self, max_size: int = 10) -> None:
        if max_size < 0:
            raise PouchConfigError(f"history max_size must be >= 0, got {max_size}")
        self.max_size = max_size
        self._past: deque[T] = deque(maxlen=max_size)
        self._future: deque[T] = deque()
        self._pouch: Pouch[T] | None = None

    def setup(self, pouch: Pouch[T]) -> None:
        if self._pouch is not None:
            raise PouchConfigError("history plugin instances cannot be shared between stores")
        self._pouch = pouch
        pouch.attach("history", self)

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        # Recorded only once the commit has gone through every hook.
        if origin is CommitOrigin.USER and self.max_size > 0:
            self._past.append(old_value)
            self._future.clear()

    @property
    def past(self) -> tuple[T, ...]:
        return tuple(self._past)

    @property
    def future(self) -> tuple[T, ...]:
        return tuple(self._future)

    def can_undo(self) -> bool:
        return len(self._past) > 0

    def can_redo(self) -> bool:
        return len(self._future) > 0

    def undo(self) -> None:
        """Restore the most recent past value; no-op when there is none."""
        if not self._past:
            return
        pouch = self._require_pouch()
        current = pouch.get()
        previous = self._past.pop()
        self._future.appendleft(current)
        try:
            pouch.commit(previous, CommitOrigin.UNDO_REDO)
        except Exception:
            self._future.popleft()
            self._past.append(previous)
            raise
        _logger.debug("Undo applied (past=%d, future=%d)", len(self._past), len(self._future))

    def redo(self) -> None:
        """Re-apply the most recently undone value; no-op when there is none."""
        if not self._future:
            return
        pouch = self._require_pouch()
        current = pouch.get()
        following = self._future.popleft()
        # Appending to a full deque evicts the oldest entry; keep it for rollback.
        was_full = len(self._past) == self._past.maxlen
        evicted = self._past[0] if was_full else None
        self._past.append(current)
        try:
            pouch.commit(following, CommitOrigin.UNDO_REDO)
        except Exception:
            self._past.pop()
            if was_full:
                self._past.appendleft(evicted)  # type: ignore[arg-type]
            self._future.appendleft(following)
            raise
        _logger.debug("Redo applied (past=%d, future=%d)", len(self._past), len(self._future))

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()

    def _require_pouch(self) -> Pouch[T]:
        if self._pouch is None:
            raise PouchConfigError("history plugin used before setup")
        return self._pouch


def history(max_size: int = 10) -> History[T]:
    """Create a bounded undo/redo plugin keeping up to *max_size* past values."""
    return History(max_size)
