"""Tests for Waker, Context and the permit-based Parker."""

from __future__ import annotations

import threading
import time

from cogwheel.runtime.concurrency import Context, Parker, Waker, make_waker


def test_wake_invokes_target(counter) -> None:
    waker = Waker(counter)
    waker.wake()
    waker.wake()

    assert counter.count == 2


def test_clone_wakes_same_target(counter) -> None:
    waker = Waker(counter)
    twin = waker.clone()
    twin.wake()

    assert counter.count == 1
    assert twin.will_wake(waker)
    assert twin is not waker


def test_will_wake_distinguishes_targets(make_counter) -> None:
    a, b = Waker(make_counter()), Waker(make_counter())
    assert not a.will_wake(b)


def test_noop_waker() -> None:
    Waker.noop().wake()


def test_context_exposes_waker(counter) -> None:
    waker = Waker(counter)
    cx = Context.from_waker(waker)

    assert cx.waker is waker
    assert Context(waker).waker is waker


# ═════════════════════════════════════════════════════════════════════════════
# Parker
# ═════════════════════════════════════════════════════════════════════════════


def test_unpark_before_park_is_not_lost() -> None:
    parker = Parker()
    parker.unpark()
    assert parker.has_permit

    start = time.monotonic()
    assert parker.park() is True
    assert time.monotonic() - start < 0.5
    assert not parker.has_permit


def test_park_times_out_without_permit() -> None:
    assert Parker().park(timeout=0.02) is False


def test_unparks_coalesce() -> None:
    parker = Parker()
    parker.unpark()
    parker.unpark()

    assert parker.park(timeout=0.02) is True
    assert parker.park(timeout=0.02) is False


def test_wake_from_another_thread() -> None:
    waker, wait = make_waker()
    timer = threading.Timer(0.02, waker.wake)
    timer.start()
    try:
        assert wait(2.0) is True
    finally:
        timer.cancel()


def test_make_waker_uses_fresh_parker() -> None:
    first, _ = make_waker()
    second, wait_second = make_waker()
    first.wake()

    assert not first.will_wake(second)
    assert wait_second(0.02) is False
