"""Shared state for plugins that hold a proposal back from the commit chain."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pypouch._scheduler import AsyncioScheduler, CancelHandle, Scheduler
from pypouch.exceptions import PouchConfigError
from pypouch.state.plugin import NextHandler, Plugin

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")

_NOTHING: Any = object()


class DeferredPlugin(Plugin[T], Generic[T]):
    """Interceptor plugin owning at most one pending proposal and one live timer."""

    def __init__(self, delay: float, *, scheduler: Scheduler | None = None) -> None:
        if delay < 0:
            raise PouchConfigError(f"{self.name} delay must be >= 0, got {delay}")
        self.delay = float(delay)
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._pending: Any = _NOTHING
        self._next: NextHandler | None = None
        self._timer: CancelHandle | None = None
        self._pouch: Pouch[T] | None = None

    def setup(self, pouch: Pouch[T]) -> None:
        if self._pouch is not None:
            raise PouchConfigError(f"{self.name} plugin instances cannot be shared between stores")
        self._pouch = pouch
        pouch.intercept(self._intercept)

    def _intercept(self, proposal: Any, next_handler: NextHandler) -> None:
        raise NotImplementedError

    @property
    def pending(self) -> bool:
        """Whether a proposal is waiting to be committed."""
        return self._pending is not _NOTHING

    def _hold(self, proposal: Any, next_handler: NextHandler) -> None:
        self._pending = proposal
        self._next = next_handler

    def _take(self) -> tuple[Any, NextHandler | None]:
        proposal, next_handler = self._pending, self._next
        self._pending = _NOTHING
        self._next = None
        return proposal, next_handler

    def _schedule(self, callback: Any) -> None:
        # Replace the live timer only once the new one exists.
        timer = self._scheduler.call_later(self.delay, callback)
        self._cancel_timer()
        self._timer = timer

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """Drop any pending proposal and stop the timer."""
        self._cancel_timer()
        self._take()
