from __future__ import annotations

import pytest

from pypouch import (
    CommitOrigin,
    CommitRejectedError,
    MemoryStorage,
    Plugin,
    PouchConfigError,
    history,
    persist,
    pouch,
    store,
)
from pypouch.state.store import Pouch


class _Recorder(Plugin[int]):
    name = "recorder"

    def __init__(self) -> None:
        self.calls: list[tuple[int, int, CommitOrigin]] = []
        self.observed: list[int] = []

    def on_commit(self, new_value: int, old_value: int, origin: CommitOrigin) -> int:
        self.calls.append((new_value, old_value, origin))
        return new_value

    def after_commit(self, new_value: int, old_value: int, origin: CommitOrigin) -> None:
        self.observed.append(new_value)


class _Doubler(Plugin[int]):
    name = "doubler"

    def initialize(self, value: int) -> int:
        return value * 2

    def on_commit(self, new_value: int, old_value: int, origin: CommitOrigin) -> int:
        return new_value * 2


class _RejectNegative(Plugin[int]):
    name = "reject-negative"

    def on_commit(self, new_value: int, old_value: int, origin: CommitOrigin) -> int:
        if new_value < 0:
            raise CommitRejectedError("negative", value=new_value)
        return new_value


def test_get_returns_last_committed_value_and_listener_fires_once_per_set() -> None:
    counter = pouch(0)
    notifications: list[int] = []
    counter.subscribe(lambda: notifications.append(counter.get()))

    for value in (3, 3, -1, 10):
        counter.set(value)
        assert counter.get() == value

    assert notifications == [3, 3, -1, 10]


def test_updater_resolves_against_current_value() -> None:
    counter = pouch(1)
    counter.set(lambda n: n + 1)
    counter.set(lambda n: n * 10)
    assert counter.get() == 20


def test_store_alias_builds_same_type() -> None:
    assert isinstance(store("x"), Pouch)


def test_unsubscribe_stops_notifications() -> None:
    counter = pouch(0)
    calls: list[str] = []
    unsubscribe = counter.subscribe(lambda: calls.append("a"))
    counter.subscribe(lambda: calls.append("b"))

    counter.set(1)
    unsubscribe()
    counter.set(2)

    assert calls == ["a", "b", "b"]


def test_same_listener_registered_once() -> None:
    counter = pouch(0)
    calls: list[int] = []

    def listener() -> None:
        calls.append(counter.get())

    counter.subscribe(listener)
    counter.subscribe(listener)
    counter.set(5)

    assert calls == [5]


def test_initialize_chains_and_hooks_run_in_order() -> None:
    recorder = _Recorder()
    counter = pouch(1, [_Doubler(), recorder])

    assert counter.get() == 2

    counter.set(5)
    assert counter.get() == 10
    assert recorder.calls == [(10, 2, CommitOrigin.USER)]
    assert recorder.observed == [10]


def test_rejected_commit_leaves_value_and_skips_notification() -> None:
    recorder = _Recorder()
    counter = pouch(4, [_RejectNegative(), recorder])
    notified: list[int] = []
    counter.subscribe(lambda: notified.append(counter.get()))

    with pytest.raises(CommitRejectedError):
        counter.set(-3)

    assert counter.get() == 4
    assert notified == []
    assert recorder.calls == []


def test_rejection_from_later_hook_discards_earlier_transform() -> None:
    counter = pouch(1, [_Doubler(), _RejectNegative()])

    with pytest.raises(CommitRejectedError):
        counter.set(-1)

    assert counter.get() == 2


def test_subscribers_notified_before_after_commit_observers() -> None:
    order: list[str] = []

    class Observer(Plugin[int]):
        def after_commit(self, new_value: int, old_value: int, origin: CommitOrigin) -> None:
            order.append("observer")

    counter = pouch(0, [Observer()])
    counter.subscribe(lambda: order.append("listener"))
    counter.set(1)

    assert order == ["listener", "observer"]


def test_failing_listener_does_not_skip_after_commit_observers() -> None:
    storage = MemoryStorage()
    undo = history(5)
    counter = pouch(0, [undo, persist("counter", storage=storage)])

    def listener() -> None:
        if counter.get() == 1:
            raise RuntimeError("listener failed")

    counter.subscribe(listener)

    with pytest.raises(RuntimeError):
        counter.set(1)
    assert counter.get() == 1
    assert undo.past == (0,)
    assert storage.read("counter") == "1"

    counter.set(2)
    assert undo.past == (0, 1)
    assert storage.read("counter") == "2"


def test_nested_set_from_listener_runs_after_current_notifications() -> None:
    counter = pouch(0)
    seen: list[tuple[str, int]] = []

    def first() -> None:
        seen.append(("first", counter.get()))
        if counter.get() == 1:
            counter.set(lambda n: n + 1)
            # Queued: the current commit is still being delivered.
            assert counter.get() == 1

    def second() -> None:
        seen.append(("second", counter.get()))

    counter.subscribe(first)
    counter.subscribe(second)
    counter.set(1)

    assert counter.get() == 2
    assert seen == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]


def test_interceptors_wrap_in_installation_order() -> None:
    calls: list[str] = []

    class Tagger(Plugin[str]):
        def __init__(self, tag: str) -> None:
            self.tag = tag

        def setup(self, pouch: Pouch[str]) -> None:
            def interceptor(proposal: str, next_handler) -> None:
                calls.append(self.tag)
                next_handler(proposal + self.tag)

            pouch.intercept(interceptor)

    text = pouch("", [Tagger("a"), Tagger("b")])
    text.set(">")

    # The last installed interceptor is outermost.
    assert calls == ["b", "a"]
    assert text.get() == ">ba"


def test_commit_bypasses_interceptors() -> None:
    class Blocker(Plugin[int]):
        def setup(self, pouch: Pouch[int]) -> None:
            pouch.intercept(lambda proposal, next_handler: None)

    counter = pouch(0, [Blocker()])
    counter.set(1)
    assert counter.get() == 0

    counter.commit(7, CommitOrigin.REMOTE)
    assert counter.get() == 7


def test_capability_slots_are_exclusive() -> None:
    class ComputedA(Plugin[int]):
        def setup(self, pouch: Pouch[int]) -> None:
            pouch.attach("computed", lambda: "a")

    with pytest.raises(PouchConfigError):
        pouch(0, [ComputedA(), ComputedA()])

    with pytest.raises(PouchConfigError):
        pouch(0).attach("widgets", object())
