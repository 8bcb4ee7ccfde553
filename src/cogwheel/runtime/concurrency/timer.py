"""Thread-backed timers.

Bridges a blocking ``time.sleep`` into the poll protocol: the first poll
hands the wait to one detached worker thread and returns Pending; the
worker sleeps, marks the timer fired and wakes the most recently registered
waker. The polling thread never blocks.

    - WaitFor / wait_for: delay measured from the first poll
    - Sleep / sleep: deadline fixed when the timer is created (the race
      combinator's clock, so "timeout measured from call entry" holds)

One worker thread per timer instance, never more. A timer abandoned before
it fires still lets its worker run to completion; the final wake then goes
to a parker nobody waits on.
"""

from __future__ import annotations

import itertools
import threading
import time
from datetime import timedelta
from typing import TYPE_CHECKING, Callable

from cogwheel.foundation.config import get_settings
from cogwheel.observability import get_logger

from .future import Future, Pending, Poll, Ready
from .interop import spawn_detached

if TYPE_CHECKING:
    from .waker import Context, Waker

log = get_logger("cogwheel.timer")

_timer_ids = itertools.count(1)

Duration = float | int | timedelta


def to_seconds(duration: Duration) -> float:
    """Normalize seconds or a timedelta to float seconds.

    Raises:
        ValueError: For negative durations
    """
    seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
    if seconds < 0:
        raise ValueError(f"duration must be >= 0, got {seconds}")
    return seconds


class _ThreadTimer(Future[None]):
    """Shared state machine: unspawned -> spawned -> fired."""

    __slots__ = ("_lock", "_waker", "_spawned", "_fired")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._waker: Waker | None = None
        self._spawned = False
        self._fired = False

    @property
    def spawned(self) -> bool:
        """Whether the worker thread has been started."""
        return self._spawned

    @property
    def fired(self) -> bool:
        return self._fired

    def _register(self, cx: Context) -> bool | None:
        """Store the newest waker.

        Returns None if the worker already fired (the caller is Ready),
        otherwise whether the caller must spawn the worker.
        """
        with self._lock:
            if self._fired:
                return None
            self._waker = cx.waker.clone()
            spawn, self._spawned = not self._spawned, True
            return spawn

    def _arm(self, cx: Context, deadline: Callable[[], float]) -> Poll[None]:
        match self._register(cx):
            case None:
                return Ready(None)
            case True:
                self._spawn(deadline())
        return Pending

    def _run(self, deadline: float) -> None:
        # sleep() may return a hair early; the deadline is the contract
        while (left := deadline - time.monotonic()) > 0:
            time.sleep(left)
        with self._lock:
            self._fired = True
            waker, self._waker = self._waker, None
        log.debug("timer fired", timer=type(self).__name__)
        if waker is not None:
            waker.wake()

    def _spawn(self, deadline: float) -> None:
        name = f"{get_settings().runtime.timer_thread_prefix}-{next(_timer_ids)}"
        spawn_detached(self._run, deadline, name=name)
        log.debug("timer worker spawned", timer=type(self).__name__,
                  delay=round(max(0.0, deadline - time.monotonic()), 6), thread=name)


class WaitFor(_ThreadTimer):
    """Delay of ``duration`` seconds, counted from the first poll.

    First poll: spawn the worker, return Pending. After the worker fires,
    every poll returns Ready(None) at once. Polls in between re-register the
    waker and stay Pending.
    """

    __slots__ = ("duration",)

    def __init__(self, duration: Duration) -> None:
        super().__init__()
        self.duration = to_seconds(duration)

    def poll(self, cx: Context) -> Poll[None]:
        if self._fired:
            return Ready(None)
        return self._arm(cx, lambda: time.monotonic() + self.duration)

    def __repr__(self) -> str:
        return f"WaitFor({self.duration}s, spawned={self._spawned}, fired={self._fired})"


class Sleep(_ThreadTimer):
    """Timer that completes at a deadline fixed on construction.

    A poll at or past the deadline is Ready without spawning anything, which
    also covers a zero duration.
    """

    __slots__ = ("deadline",)

    def __init__(self, duration: Duration) -> None:
        super().__init__()
        self.deadline = time.monotonic() + to_seconds(duration)

    def remaining(self) -> float:
        """Seconds left until the deadline (0 once passed)."""
        return max(0.0, self.deadline - time.monotonic())

    def is_elapsed(self) -> bool:
        return self._fired or time.monotonic() >= self.deadline

    def poll(self, cx: Context) -> Poll[None]:
        if self.is_elapsed():
            return Ready(None)
        return self._arm(cx, lambda: self.deadline)

    def __repr__(self) -> str:
        return f"Sleep(remaining={self.remaining():.3f}s, spawned={self._spawned})"


def wait_for(duration: Duration) -> WaitFor:
    """Thread-backed delay future.

    Example:
        >>> block_on(wait_for(timedelta(milliseconds=50)))  # returns None after >= 50 ms
    """
    return WaitFor(duration)


def sleep(duration: Duration) -> Sleep:
    """Deadline timer future; the clock starts now, not at the first poll."""
    return Sleep(duration)
