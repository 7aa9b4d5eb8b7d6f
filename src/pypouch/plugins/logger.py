"""Log store initialization and every commit."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from pypouch.state.plugin import CommitOrigin, Plugin

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")


class Logger(Plugin[T], Generic[T]):
    name = "logger"

    def __init__(self, label: str, *, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.label = label
        self.level = level
        self._log = logger or logging.getLogger(f"pypouch.store.{label}")

    def setup(self, pouch: Pouch[T]) -> None:
        self._log.log(self.level, "[%s] initialized with %r", self.label, pouch.get())

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        self._log.log(
            self.level,
            "[%s] %s commit: %r -> %r (%s)",
            self.label,
            origin,
            old_value,
            new_value,
            type(new_value).__name__,
        )


def logger(label: str, *, logger: logging.Logger | None = None, level: int = logging.INFO) -> Logger[T]:
    """Log every commit under ``pypouch.store.<label>`` (or a supplied logger)."""
    return Logger(label, logger=logger, level=level)
