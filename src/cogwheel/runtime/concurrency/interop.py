"""Sync/async interoperability: driving futures from plain threads.

    - block_on: run one future to completion on the calling thread
    - spawn_detached: start a fire-and-forget daemon worker

block_on is the single-task run loop. There is no reactor: the calling
thread parks between polls and the future's own event sources (timer
workers, queue peers) unpark it through the waker. Each call gets a fresh
Parker, so a late wake from an abandoned timer of an earlier call cannot
leak a permit into this one.

Example:
    >>> async def slow() -> int:
    ...     await wait_for(0.1)
    ...     return 100
    >>> block_on(timeout(0.123, slow()))
    Completed(value=100)
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Coroutine
from typing import Callable, TypeVar

from cogwheel.foundation.config import get_settings
from cogwheel.observability import get_logger

from .future import Future, Pin, Ready, into_future
from .waker import Context, make_waker

T = TypeVar("T")

log = get_logger("cogwheel.runtime")

_thread_ids = itertools.count(1)


def block_on(future: Future[T] | Coroutine[object, object, T]) -> T:
    """Drive ``future`` to completion on the current thread.

    Polls, and parks the thread whenever the future is pending. A wake
    delivered before the thread parks is kept as a permit, so the park
    returns at once. No timeout and no cancellation: a future that never
    completes blocks forever; compose with ``timeout()`` to bound it.

    Args:
        future: Future or coroutine to run

    Returns:
        The future's output

    Raises:
        Exception: Whatever the future raises while being polled
    """
    pinned = Pin(into_future(future))
    waker, wait = make_waker()
    cx = Context.from_waker(waker)
    park_timeout = get_settings().runtime.park_timeout
    polls = 0

    while True:
        polls += 1
        match pinned.poll(cx):
            case Ready(value):
                log.debug("run loop finished", polls=polls, future=type(pinned.get()).__name__)
                return value
        wait(park_timeout)


def spawn_detached(
    target: Callable[..., object],
    *args: object,
    name: str | None = None,
) -> threading.Thread:
    """Start ``target(*args)`` on a daemon thread nobody joins."""
    thread = threading.Thread(
        target=target,
        args=args,
        name=name or f"cogwheel-worker-{next(_thread_ids)}",
        daemon=True,
    )
    thread.start()
    return thread
