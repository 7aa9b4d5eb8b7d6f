"""Plugin contract.

A plugin can take part in a store's lifecycle at four points:

- ``initialize`` once at construction, transforming the initial value
  (each plugin receives the previous plugin's output);
- ``setup`` once against the live store, to fill a capability slot, install a
  mutation interceptor, or kick off asynchronous seeding;
- ``on_commit`` on every commit, before the value becomes authoritative; it may
  transform the proposed value or raise to veto the commit;
- ``after_commit`` on every commit, after subscribers have been notified.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]
#: Continues an interceptor chain with a (possibly replaced) proposal.
NextHandler = Callable[[Any], None]
#: ``interceptor(proposal, next_handler)`` decides whether and when to continue.
Interceptor = Callable[[Any, NextHandler], None]


class CommitOrigin(StrEnum):
    """Why a commit is happening; passed down the commit chain to every hook."""

    USER = "user"
    UNDO_REDO = "undo_redo"
    REMOTE = "remote"


def resolve_proposal(proposal: Any, current: Any) -> Any:
    """Resolve a literal value or an ``(old) -> new`` updater against *current*."""
    if callable(proposal):
        return proposal(current)
    return proposal


class Plugin(Generic[T]):
    """Base class for store plugins; every hook defaults to a no-op pass-through."""

    #: Short label used in logs and ``repr``.
    name: str = "plugin"

    def initialize(self, value: T) -> T:
        return value

    def setup(self, pouch: Pouch[T]) -> None:
        return None

    def on_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> T:
        return new_value

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class HistoryOps(Protocol):
    """Capability exposed in ``pouch.history``."""

    def undo(self) -> None: ...

    def redo(self) -> None: ...

    def can_undo(self) -> bool: ...

    def can_redo(self) -> bool: ...

    def clear(self) -> None: ...

    @property
    def past(self) -> tuple[Any, ...]: ...

    @property
    def future(self) -> tuple[Any, ...]: ...


class StorageOps(Protocol):
    """Capability exposed in ``pouch.storage``."""

    def info(self) -> dict[str, Any]: ...

    def clear(self) -> None: ...


class SyncOps(Protocol):
    """Capability exposed in ``pouch.sync``."""

    def flush(self) -> None: ...

    async def drain(self) -> None: ...

    async def aclose(self) -> None: ...
