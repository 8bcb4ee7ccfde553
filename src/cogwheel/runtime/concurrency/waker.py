"""Wake channel: the handle a suspended future leaves behind.

A Waker wraps a resumption target (unpark a thread, re-enqueue a task).
Calling ``wake()`` asks the owning driver to poll again. It is safe from any
thread, may be called any number of times, and several wakes before the next
poll coalesce into one re-poll. Waking a finished computation does nothing
useful and does no harm.

The run loop's target is a ``Parker``: a single-permit signal. ``unpark()``
stores the permit even when nobody is parked yet, so a wake that lands
between "poll returned Pending" and "driver parks" is never lost.
"""

from __future__ import annotations

import threading
from typing import Callable


def _noop() -> None:
    pass


class Waker:
    """Cloneable, thread-safe handle that requests a re-poll.

    Example:
        >>> waker, wait = make_waker()
        >>> threading.Timer(0.05, waker.wake).start()
        >>> wait()  # returns once woken
        True
    """

    __slots__ = ("_wake_fn",)

    def __init__(self, wake_fn: Callable[[], None]) -> None:
        self._wake_fn = wake_fn

    @classmethod
    def noop(cls) -> Waker:
        """Waker that wakes nothing (for manual polling)."""
        return cls(_noop)

    def wake(self) -> None:
        """Schedule a re-poll of the owning computation."""
        self._wake_fn()

    def clone(self) -> Waker:
        """Independent handle waking the same target."""
        return Waker(self._wake_fn)

    def will_wake(self, other: Waker) -> bool:
        """Whether both handles wake the same target."""
        return self._wake_fn is other._wake_fn

    def __repr__(self) -> str:
        return f"Waker({getattr(self._wake_fn, '__qualname__', self._wake_fn)!r})"


class Context:
    """Per-poll bundle carrying the waker to use for that attempt."""

    __slots__ = ("_waker",)

    def __init__(self, waker: Waker) -> None:
        self._waker = waker

    @classmethod
    def from_waker(cls, waker: Waker) -> Context:
        return cls(waker)

    @property
    def waker(self) -> Waker:
        return self._waker

    def __repr__(self) -> str:
        return f"Context({self._waker!r})"


class Parker:
    """Single-permit block/unblock primitive.

    ``unpark`` stores a permit (extra unparks coalesce). ``park`` consumes a
    stored permit immediately, otherwise blocks until one arrives or the
    timeout passes.
    """

    __slots__ = ("_cond", "_permit")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._permit = False

    def park(self, timeout: float | None = None) -> bool:
        """Block until unparked. Returns False only if the timeout expired first."""
        with self._cond:
            if not self._permit:
                self._cond.wait_for(lambda: self._permit, timeout)
            woken, self._permit = self._permit, False
            return woken

    def unpark(self) -> None:
        with self._cond:
            self._permit = True
            self._cond.notify()

    @property
    def has_permit(self) -> bool:
        with self._cond:
            return self._permit


def make_waker() -> tuple[Waker, Callable[..., bool]]:
    """Waker bound to a fresh Parker, plus the matching ``wait(timeout=None)``."""
    parker = Parker()
    return Waker(parker.unpark), parker.park
