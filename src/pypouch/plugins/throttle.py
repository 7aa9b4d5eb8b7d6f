"""Throttled commits: at most one commit per cooldown window."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pypouch._scheduler import Scheduler
from pypouch.plugins._deferred import DeferredPlugin
from pypouch.state.plugin import NextHandler

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Throttle(DeferredPlugin[T], Generic[T]):
    """Commit immediately, then coalesce proposals until the window ends.

    The first proposal outside a cooldown commits at once and starts a
    ``window`` second cooldown. Proposals during the cooldown overwrite each
    other; when it ends the latest one is committed (resolved against the
    value at that time) and a new cooldown starts. A window that ends with
    nothing recorded simply closes.
    """

    name = "throttle"

    def __init__(self, window: float, *, scheduler: Scheduler | None = None) -> None:
        super().__init__(window, scheduler=scheduler)
        self._cooling = False

    @property
    def cooling(self) -> bool:
        return self._cooling

    def _intercept(self, proposal: Any, next_handler: NextHandler) -> None:
        if self._cooling:
            self._hold(proposal, next_handler)
            _logger.debug("Throttle cooling; proposal recorded")
            return

        self._cooling = True
        try:
            self._schedule(self._end_window)
            next_handler(proposal)
        except Exception:
            # Nothing was committed, so there is no window to enforce.
            self.cancel()
            raise

    def _end_window(self) -> None:
        self._timer = None
        if not self.pending:
            self._cooling = False
            return
        try:
            self._schedule(self._end_window)
        except Exception:
            self.cancel()
            raise
        proposal, next_handler = self._take()
        if next_handler is not None:
            next_handler(proposal)

    def flush(self) -> None:
        """Commit the recorded proposal now and restart the cooldown."""
        if self.pending:
            self._cancel_timer()
            self._end_window()

    def cancel(self) -> None:
        super().cancel()
        self._cooling = False


def throttle(window: float, *, scheduler: Scheduler | None = None) -> Throttle[T]:
    """Create a throttle plugin with a cooldown of *window* seconds."""
    return Throttle(window, scheduler=scheduler)
