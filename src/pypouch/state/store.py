"""Reactive single-value store.

This is the only component allowed to hold or replace the authoritative
value. Plugins keep derived state only.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from pypouch.exceptions import PouchConfigError
from pypouch.state.plugin import (
    CommitOrigin,
    HistoryOps,
    Interceptor,
    Listener,
    Plugin,
    StorageOps,
    SyncOps,
    Unsubscribe,
    resolve_proposal,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_CAPABILITY_SLOTS: frozenset[str] = frozenset({"history", "storage", "sync", "computed"})


class Pouch(Generic[T]):
    """In-memory value container with a composable plugin pipeline.

    Usage::

        counter = pouch(0, [history(5)])
        counter.set(lambda n: n + 1)
        counter.history.undo()

    Mutations go through two layers. Interceptors installed by plugins during
    ``setup`` wrap :meth:`set` and decide whether and when a proposal moves on;
    the innermost handler resolves it and runs the commit chain (every
    plugin's ``on_commit`` in order). The value only changes once every hook
    has returned, then subscribers are notified, then ``after_commit``
    observers run.

    Commits never interleave: a mutation issued while a commit is being
    dispatched (from a hook, a subscriber or an observer) is queued and runs
    once the current commit has been fully delivered.
    """

    def __init__(self, initial_value: T, plugins: Iterable[Plugin[T]] = ()) -> None:
        self._plugins: tuple[Plugin[T], ...] = tuple(plugins)
        self._listeners: dict[Listener, None] = {}
        self._interceptors: list[Interceptor] = []
        self._queue: deque[tuple[Any, CommitOrigin]] = deque()
        self._dispatching = False

        self.history: HistoryOps | None = None
        self.storage: StorageOps | None = None
        self.sync: SyncOps | None = None
        self.computed: Callable[[], Any] | None = None

        value = initial_value
        for plugin in self._plugins:
            value = plugin.initialize(value)
        self._value: T = value

        for plugin in self._plugins:
            plugin.setup(self)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def plugins(self) -> tuple[Plugin[T], ...]:
        return self._plugins

    def get(self) -> T:
        """Return the last committed value."""
        return self._value

    def set(self, value: T | Callable[[T], T]) -> None:
        """Propose a literal value or an ``(old) -> new`` updater.

        Without interceptors the commit is synchronous: by the time this
        returns, subscribers have been notified. A :class:`CommitRejectedError`
        (or any exception) raised by a hook leaves the value untouched.
        """
        self._run_interceptor(len(self._interceptors) - 1, value)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register *listener*; returns a callable that removes it.

        Listeners run synchronously in registration order, once per commit.
        Subscribing the same listener twice keeps a single registration.
        """
        self._listeners[listener] = None

        def unsubscribe() -> None:
            self._listeners.pop(listener, None)

        return unsubscribe

    # ------------------------------------------------------------------
    # Plugin-facing surface
    # ------------------------------------------------------------------

    def intercept(self, interceptor: Interceptor) -> None:
        """Wrap the mutation entry point.

        The most recently installed interceptor runs first; calling its
        ``next_handler`` hands the proposal to the one installed before it,
        and eventually to the commit chain.
        """
        self._interceptors.append(interceptor)

    def attach(self, slot: str, capability: Any) -> None:
        """Fill one of the fixed capability slots (``history``, ``storage``, ...)."""
        if slot not in _CAPABILITY_SLOTS:
            raise PouchConfigError(f"Unknown capability slot: {slot!r}")
        if getattr(self, slot) is not None:
            raise PouchConfigError(f"Capability slot {slot!r} is already provided by another plugin")
        setattr(self, slot, capability)

    def commit(self, value: T | Callable[[T], T], origin: CommitOrigin = CommitOrigin.USER) -> None:
        """Run *value* through the commit chain, bypassing interceptors."""
        self._queue.append((value, origin))
        if self._dispatching:
            _logger.debug("Commit (%s) queued behind an in-flight commit", origin)
            return

        self._dispatching = True
        try:
            while self._queue:
                proposal, queued_origin = self._queue.popleft()
                self._apply(proposal, queued_origin)
        except BaseException:
            if self._queue:
                _logger.warning("Dropping %d queued commit(s) after a failed commit", len(self._queue))
                self._queue.clear()
            raise
        finally:
            self._dispatching = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_interceptor(self, index: int, proposal: Any) -> None:
        if index < 0:
            self.commit(proposal, CommitOrigin.USER)
            return
        self._interceptors[index](proposal, lambda next_proposal: self._run_interceptor(index - 1, next_proposal))

    def _apply(self, proposal: Any, origin: CommitOrigin) -> None:
        old_value = self._value
        new_value = resolve_proposal(proposal, old_value)

        for plugin in self._plugins:
            new_value = plugin.on_commit(new_value, old_value, origin)

        self._value = new_value

        try:
            for listener in list(self._listeners):
                listener()
        finally:
            # The value is committed; observers must see it even if a listener failed.
            for plugin in self._plugins:
                plugin.after_commit(new_value, old_value, origin)

    def __repr__(self) -> str:
        names = ", ".join(plugin.name for plugin in self._plugins)
        return f"<Pouch value={self._value!r} plugins=[{names}]>"


def pouch(initial_value: T, plugins: Iterable[Plugin[T]] = ()) -> Pouch[T]:
    """Create a store from an initial value and an ordered plugin list."""
    return Pouch(initial_value, plugins)


# Kept as an alias for callers that prefer the generic name.
store = pouch
