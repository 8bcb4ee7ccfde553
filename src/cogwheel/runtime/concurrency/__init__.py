"""Poll-based concurrency primitives driven by plain OS threads.

A minimal task substrate: futures advance one ``poll`` at a time and report
progress through a waker instead of blocking. One run loop drives one
future per thread; waiting is handed to detached worker threads.

Key Components:
    - Future protocol: Future, Poll (Ready | Pending), Pin, coroutine bridge
    - Wake channel: Waker, Context, Parker
    - Timers: wait_for (delay from first poll), sleep (fixed deadline)
    - Wait strategies: timeout (deadline race), join_all (fan-out)
    - Run loop: block_on
    - Bounded hand-off: channel, TaskPool

Design Philosophy:
    - Never block the polling thread; park only in block_on
    - Completion wins ties against a deadline
    - Expected failures are values (TimedOut, None, Err), misuse raises

Example:
    >>> from cogwheel.runtime.concurrency import block_on, timeout, wait_for
    >>>
    >>> async def job() -> str:
    ...     await wait_for(0.05)
    ...     return "done"
    >>>
    >>> block_on(timeout(0.123, job()))
    Completed(value='done')
"""

from __future__ import annotations

# Future protocol
from .future import (
    CoroutineFuture,
    Future,
    Immediate,
    Map,
    Never,
    Pending,
    Pin,
    Poll,
    PollFn,
    Ready,
    current_context,
    into_future,
    pending,
    poll_fn,
    ready,
)

# Wake channel
from .waker import Context, Parker, Waker, make_waker

# Run loop and threads
from .interop import block_on, spawn_detached

# Timers
from .timer import Duration, Sleep, WaitFor, sleep, to_seconds, wait_for

# Wait strategies
from .wait import (
    Completed,
    JoinAll,
    TimedOut,
    Timeout,
    TimeoutResult,
    join_all,
    timeout,
)

# Bounded hand-off
from .channel import Receiver, RecvFuture, Sender, SendFuture, channel
from .pool import TaskPool

__all__ = [
    # Future protocol
    "Future", "Poll", "Ready", "Pending", "Pin",
    "Immediate", "Never", "PollFn", "Map", "CoroutineFuture",
    "ready", "pending", "poll_fn", "into_future", "current_context",
    # Wake channel
    "Waker", "Context", "Parker", "make_waker",
    # Run loop
    "block_on", "spawn_detached",
    # Timers
    "Duration", "WaitFor", "Sleep", "wait_for", "sleep", "to_seconds",
    # Wait strategies
    "Timeout", "TimeoutResult", "Completed", "TimedOut", "timeout",
    "JoinAll", "join_all",
    # Bounded hand-off
    "Sender", "Receiver", "SendFuture", "RecvFuture", "channel", "TaskPool",
]
