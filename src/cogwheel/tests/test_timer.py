"""Tests for thread-backed timers (WaitFor, Sleep)."""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest

from cogwheel.runtime.concurrency import Pending, Ready, Sleep, WaitFor, block_on, sleep, wait_for
from cogwheel.runtime.concurrency import timer as timer_module
from cogwheel.runtime.concurrency.timer import to_seconds


@pytest.fixture
def spawns(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record the thread name of every timer worker started."""
    names: list[str] = []
    real = timer_module.spawn_detached

    def recording(target, *args, name=None):
        names.append(name)
        return real(target, *args, name=name)

    monkeypatch.setattr(timer_module, "spawn_detached", recording)
    return names


def wait_until(predicate, limit: float = 2.0) -> bool:
    deadline = time.monotonic() + limit
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.005)
    return True


# ═════════════════════════════════════════════════════════════════════════════
# Durations
# ═════════════════════════════════════════════════════════════════════════════


def test_to_seconds_accepts_numbers_and_timedelta() -> None:
    assert to_seconds(1) == 1.0
    assert to_seconds(0.25) == 0.25
    assert to_seconds(timedelta(milliseconds=50)) == pytest.approx(0.05)


def test_negative_duration_rejected() -> None:
    with pytest.raises(ValueError, match="duration must be >= 0"):
        wait_for(-1)
    with pytest.raises(ValueError):
        sleep(timedelta(seconds=-1))


# ═════════════════════════════════════════════════════════════════════════════
# WaitFor
# ═════════════════════════════════════════════════════════════════════════════


def test_first_poll_spawns_one_worker(counter, spawns) -> None:
    timer = WaitFor(0.05)
    cx = counter.context()

    assert not timer.spawned
    assert timer.poll(cx) is Pending
    assert timer.spawned
    assert timer.poll(cx) is Pending
    assert timer.poll(cx) is Pending
    assert len(spawns) == 1


def test_worker_wakes_then_ready(counter, spawns) -> None:
    timer = WaitFor(0.02)
    timer.poll(counter.context())

    assert wait_until(lambda: counter.count == 1)
    assert timer.fired
    assert timer.poll(counter.context()) == Ready(None)
    assert timer.poll(counter.context()) == Ready(None)
    assert len(spawns) == 1


def test_newest_waker_is_woken(make_counter, spawns) -> None:
    first, second = make_counter(), make_counter()
    timer = WaitFor(0.03)
    timer.poll(first.context())
    timer.poll(second.context())

    assert wait_until(lambda: timer.fired)
    assert wait_until(lambda: second.count == 1)
    assert first.count == 0


def test_worker_thread_named_with_prefix(counter, spawns) -> None:
    WaitFor(0.01).poll(counter.context())

    assert spawns[0].startswith("cogwheel-timer-")


def test_thread_prefix_from_environment(monkeypatch, counter, spawns) -> None:
    monkeypatch.setenv("COGWHEEL_RUNTIME_TIMER_THREAD_PREFIX", "ticker")
    WaitFor(0.01).poll(counter.context())

    assert spawns[0].startswith("ticker-")


def test_worker_is_daemon(counter) -> None:
    timer = WaitFor(0.05)
    before = set(threading.enumerate())
    timer.poll(counter.context())
    workers = [t for t in threading.enumerate() if t not in before and t.name.startswith("cogwheel-timer-")]

    assert workers and all(t.daemon for t in workers)


def test_block_on_waits_at_least_duration() -> None:
    start = time.monotonic()
    assert block_on(wait_for(timedelta(milliseconds=50))) is None
    elapsed = time.monotonic() - start

    assert 0.05 <= elapsed < 0.5


def test_abandoned_timer_fires_harmlessly(counter) -> None:
    WaitFor(0.01).poll(counter.context())

    assert wait_until(lambda: counter.count == 1)


# ═════════════════════════════════════════════════════════════════════════════
# Sleep
# ═════════════════════════════════════════════════════════════════════════════


def test_zero_sleep_ready_without_worker(counter, spawns) -> None:
    timer = Sleep(0)

    assert timer.poll(counter.context()) == Ready(None)
    assert not timer.spawned
    assert spawns == []


def test_sleep_deadline_fixed_at_construction(counter, spawns) -> None:
    timer = sleep(0.02)
    time.sleep(0.03)

    assert timer.is_elapsed()
    assert timer.remaining() == 0.0
    assert timer.poll(counter.context()) == Ready(None)
    assert spawns == []


def test_sleep_pending_until_deadline(counter, spawns) -> None:
    timer = Sleep(0.05)

    assert timer.poll(counter.context()) is Pending
    assert 0 < timer.remaining() <= 0.05
    assert wait_until(lambda: counter.count == 1)
    assert timer.poll(counter.context()) == Ready(None)
    assert len(spawns) == 1


def test_block_on_sleep_respects_deadline() -> None:
    timer = sleep(0.04)
    start = time.monotonic()
    block_on(timer)

    assert time.monotonic() - start < 0.5
    assert timer.is_elapsed()
