"""Cogwheel - a minimal poll-based task substrate on plain threads.

Futures are explicit state machines advanced by ``poll``. A single-task run
loop drives one future per thread, timers hand their waiting to detached
worker threads, and a bounded queue applies backpressure to producers.

Quick Start:
    >>> from cogwheel import block_on, timeout, wait_for, Completed
    >>>
    >>> async def fetch() -> int:
    ...     await wait_for(0.1)
    ...     return 100
    >>>
    >>> match block_on(timeout(0.123, fetch())):
    ...     case Completed(value): print("got", value)
    ...     case _: print("timed out")
    got 100

Bounded Queue:
    >>> from cogwheel import TaskPool
    >>>
    >>> pool = TaskPool(queue_size=2)
    >>> block_on(pool.create("job-1"))
    Ok(None)
    >>> block_on(pool.pull_task())
    'job-1'

Configuration (environment):
    COGWHEEL_QUEUE_ENQUEUE_TIMEOUT=0.25
    COGWHEEL_LOG_LEVEL=DEBUG
    COGWHEEL_LOG_FORMAT=json
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    CogwheelError,
    ContractViolation,
    Err,
    ErrorCode,
    Ok,
    Result,
    SendError,
    TrySendError,
)

# Configuration
from .foundation.config import CogwheelSettings, clear_settings_cache, get_settings

# Logging
from .observability import configure_logging, get_logger

# Runtime
from .runtime.concurrency import (
    Completed,
    Context,
    Future,
    Pending,
    Pin,
    Poll,
    Ready,
    Receiver,
    Sender,
    Sleep,
    TaskPool,
    TimedOut,
    Timeout,
    TimeoutResult,
    WaitFor,
    Waker,
    block_on,
    channel,
    into_future,
    join_all,
    pending,
    poll_fn,
    ready,
    sleep,
    timeout,
    wait_for,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "CogwheelError",
    "ContractViolation",
    "ErrorCode",
    "SendError",
    "TrySendError",
    "Result",
    "Ok",
    "Err",
    # Configuration
    "CogwheelSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    # Future protocol
    "Future", "Poll", "Ready", "Pending", "Pin", "Waker", "Context",
    "ready", "pending", "poll_fn", "into_future",
    # Run loop and timers
    "block_on", "wait_for", "sleep", "WaitFor", "Sleep",
    # Wait strategies
    "timeout", "Timeout", "TimeoutResult", "Completed", "TimedOut", "join_all",
    # Bounded queue
    "channel", "Sender", "Receiver", "TaskPool",
]
