from __future__ import annotations

import asyncio

import pytest

from pypouch import AsyncioScheduler, ManualScheduler


def test_manual_scheduler_fires_in_due_then_fifo_order() -> None:
    clock = ManualScheduler()
    fired: list[str] = []
    clock.call_later(2.0, lambda: fired.append("late"))
    clock.call_later(1.0, lambda: fired.append("first"))
    clock.call_later(1.0, lambda: fired.append("second"))

    assert clock.advance(1.0) == 2
    assert fired == ["first", "second"]
    assert clock.pending == 1

    clock.advance(1.0)
    assert fired == ["first", "second", "late"]
    assert clock.now == 2.0


def test_cancelled_timer_never_fires() -> None:
    clock = ManualScheduler()
    fired: list[int] = []
    handle = clock.call_later(0.5, lambda: fired.append(1))
    handle.cancel()

    clock.advance(1.0)
    assert fired == []
    assert clock.pending == 0


def test_timers_scheduled_by_callbacks_fire_within_window() -> None:
    clock = ManualScheduler()
    fired: list[float] = []

    def tick() -> None:
        fired.append(clock.now)
        if len(fired) < 3:
            clock.call_later(0.25, tick)

    clock.call_later(0.25, tick)
    clock.advance(1.0)

    assert fired == [0.25, 0.5, 0.75]


def test_zero_delay_timer_scheduled_by_callback_waits_for_next_advance() -> None:
    clock = ManualScheduler()
    fired: list[str] = []

    def first() -> None:
        fired.append("first")
        clock.call_later(0.0, lambda: fired.append("second"))

    clock.call_later(0.0, first)
    clock.advance()
    assert fired == ["first"]
    assert clock.pending == 1

    clock.advance()
    assert fired == ["first", "second"]


def test_run_pending_fires_everything() -> None:
    clock = ManualScheduler()
    fired: list[int] = []
    clock.call_later(10.0, lambda: fired.append(1))
    clock.call_later(20.0, lambda: fired.append(2))

    assert clock.run_pending() == 2
    assert clock.now == 20.0


def test_callback_errors_propagate_out_of_advance() -> None:
    clock = ManualScheduler()

    def explode() -> None:
        raise RuntimeError("boom")

    clock.call_later(0.0, explode)
    with pytest.raises(RuntimeError):
        clock.advance()


@pytest.mark.asyncio
async def test_asyncio_scheduler_uses_running_loop() -> None:
    fired = asyncio.Event()
    handle = AsyncioScheduler().call_later(0.01, fired.set)
    cancelled = AsyncioScheduler().call_later(0.01, lambda: pytest.fail("should be cancelled"))
    cancelled.cancel()

    await asyncio.wait_for(fired.wait(), timeout=1.0)
    assert handle is not None
