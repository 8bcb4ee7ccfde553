"""Runtime - execution of poll-based futures.

Contains: concurrency (futures, wakers, timers, run loop, bounded queue).
"""

from __future__ import annotations

__all__ = [
    # Concurrency
    "Future", "Poll", "Ready", "Pending", "Pin", "Waker", "Context",
    "block_on", "wait_for", "sleep", "timeout", "join_all",
    "Completed", "TimedOut", "channel", "Sender", "Receiver", "TaskPool",
]


def __getattr__(name: str):
    """Lazy imports so importing the runtime package stays cheap."""
    if name in __all__:
        from . import concurrency
        return getattr(concurrency, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
