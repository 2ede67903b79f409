from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from term_deck.scheduler import Scheduler


def test_virtual_clock_jumps_to_due_events() -> None:
    scheduler = Scheduler()
    seen = []

    def anim():
        seen.append(scheduler.now)
        yield 20
        seen.append(scheduler.now)
        yield 30
        seen.append(scheduler.now)
        return "done"

    assert scheduler.run_until_complete(anim()) == "done"
    assert seen == [0.0, 20.0, 50.0]


def test_timers_interleave_with_tasks() -> None:
    scheduler = Scheduler()
    events = []
    timer = scheduler.call_every(25, lambda: events.append(("tick", scheduler.now)))

    def anim():
        for _ in range(3):
            events.append(("draw", scheduler.now))
            yield 20

    scheduler.run_until_complete(anim())
    assert events == [
        ("draw", 0.0),
        ("draw", 20.0),
        ("tick", 25.0),
        ("draw", 40.0),
        ("tick", 50.0),
    ]
    timer.cancel()
    assert scheduler.pending() == 0


def test_advance_runs_due_timers_only() -> None:
    scheduler = Scheduler()
    ticks = []
    scheduler.call_every(80, lambda: ticks.append(scheduler.now))
    scheduler.advance(250)
    assert ticks == [80.0, 160.0, 240.0]
    assert scheduler.now == 250.0


def test_realtime_mode_sleeps() -> None:
    slept = []
    scheduler = Scheduler(realtime=True, sleeper=slept.append)

    def anim():
        yield 100

    scheduler.run_until_complete(anim())
    assert slept == [0.1]


def test_task_error_is_reraised() -> None:
    scheduler = Scheduler()

    def anim():
        yield 10
        raise KeyError("boom")

    with pytest.raises(KeyError):
        scheduler.run_until_complete(anim())
