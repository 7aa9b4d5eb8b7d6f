"""Timer scheduling used by the timing-deferred and sync plugins.

Every scheduled callback returns an owned :class:`CancelHandle`. Plugins keep
at most one live handle per concern and cancel it before replacing it.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)


class CancelHandle(Protocol):
    """Revocable token for a scheduled callback."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Structural scheduling interface.

    ``asyncio.AbstractEventLoop`` already satisfies it, which keeps test
    doubles and the production implementation interchangeable.
    """

    def call_later(self, delay: float, callback: Callable[[], object]) -> CancelHandle:
        ...


class AsyncioScheduler:
    """Schedule callbacks on the running asyncio event loop.

    The loop is looked up at scheduling time, so plugins built outside of a
    coroutine can still be used once the loop is running. Exceptions raised
    by a callback are reported through the loop's exception handler rather
    than to the code that originally proposed the value.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], object]) -> CancelHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(delay, 0.0), callback)


@dataclass(order=True)
class _ManualTimer:
    due: float
    seq: int
    callback: Callable[[], object] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    #: First advance() round allowed to fire this timer.
    first_round: int = field(default=0, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic virtual-time scheduler.

    Time only moves when :meth:`advance` is called. Callbacks fire in due
    order (ties in scheduling order), and a zero delay still waits for the
    next :meth:`advance`. Exceptions raised by a callback propagate out of
    :meth:`advance`.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._timers: list[_ManualTimer] = []
        self._counter = itertools.count()
        self._round = 0
        self._advancing = False

    def call_later(self, delay: float, callback: Callable[[], object]) -> _ManualTimer:
        timer = _ManualTimer(due=self.now + max(delay, 0.0), seq=next(self._counter), callback=callback)
        if self._advancing and delay <= 0:
            timer.first_round = self._round + 1
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of live (not cancelled, not yet fired) timers."""
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float = 0.0) -> int:
        """Move the clock forward by *seconds*, firing every timer that comes due.

        Timers scheduled by a firing callback are honoured if they fall inside
        the advanced window, except zero-delay ones, which wait for the next
        call. Returns the number of callbacks run.
        """
        if seconds < 0:
            raise ValueError("cannot advance a scheduler backwards")
        target = self.now + seconds
        fired = 0
        held: list[_ManualTimer] = []
        self._round += 1
        self._advancing = True
        try:
            while self._timers and self._timers[0].due <= target:
                timer = heapq.heappop(self._timers)
                if timer.cancelled:
                    continue
                if timer.first_round > self._round:
                    held.append(timer)
                    continue
                self.now = max(self.now, timer.due)
                timer.cancelled = True
                fired += 1
                _logger.debug("Firing timer due at %.3f", timer.due)
                timer.callback()
            self.now = target
        finally:
            self._advancing = False
            for timer in held:
                heapq.heappush(self._timers, timer)
        return fired

    def run_pending(self) -> int:
        """Fire every live timer regardless of its due time."""
        fired = 0
        while self.pending:
            upcoming = min(timer.due for timer in self._timers if not timer.cancelled)
            fired += self.advance(max(upcoming - self.now, 0.0))
        return fired
