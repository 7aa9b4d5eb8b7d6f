"""Debounced commits: only the last proposal of a burst is committed."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pypouch._scheduler import Scheduler
from pypouch.plugins._deferred import DeferredPlugin
from pypouch.state.plugin import NextHandler

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debounce(DeferredPlugin[T], Generic[T]):
    """Hold every proposal until ``delay`` seconds pass without a new one.

    Each call replaces the pending proposal and restarts the timer. When the
    timer fires the proposal continues down the chain; updaters therefore
    resolve against the value at fire time. A zero delay still defers to the
    next scheduler turn.
    """

    name = "debounce"

    def _intercept(self, proposal: Any, next_handler: NextHandler) -> None:
        self._schedule(self._fire)
        self._hold(proposal, next_handler)
        _logger.debug("Debounce rescheduled for %.3fs", self.delay)

    def _fire(self) -> None:
        self._timer = None
        self._release()

    def _release(self) -> None:
        proposal, next_handler = self._take()
        if next_handler is not None:
            next_handler(proposal)

    def flush(self) -> None:
        """Commit the pending proposal now instead of waiting for the timer."""
        self._cancel_timer()
        self._release()


def debounce(delay: float, *, scheduler: Scheduler | None = None) -> Debounce[T]:
    """Create a debounce plugin with a quiet period of *delay* seconds."""
    return Debounce(delay, scheduler=scheduler)
