"""Derived value kept in step with the store."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

from pypouch.state.plugin import CommitOrigin, Plugin

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")
C = TypeVar("C")


class Computed(Plugin[T], Generic[T, C]):
    name = "computed"

    def __init__(self, compute: Callable[[T], C]) -> None:
        self._compute = compute
        self._value: C | None = None

    def setup(self, pouch: Pouch[T]) -> None:
        self._value = self._compute(pouch.get())
        pouch.attach("computed", self.get)

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        self._value = self._compute(new_value)

    def get(self) -> C | None:
        return self._value


def computed(compute: Callable[[T], C]) -> Computed[T, C]:
    """Expose ``compute(value)`` as ``pouch.computed()``, recomputed on every commit."""
    return Computed(compute)
