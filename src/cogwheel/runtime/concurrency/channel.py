"""Bounded multi-producer, single-consumer hand-off channel.

A fixed-capacity FIFO buffer shared by any number of ``Sender`` handles and
one ``Receiver``. Sending into a full buffer suspends the sending future
(backpressure) until the receiver frees a slot; receiving from an empty
buffer suspends until an item arrives or every sender is closed.

Invariants:
    - occupancy never exceeds capacity (check + append under one lock)
    - items come out in acceptance order, each exactly once
    - after the last sender closes, receives drain the buffer then see None
    - after the receiver closes, pending and new sends get Err(SendError)

Wakers are collected under the lock and woken after releasing it. A freed
slot wakes every blocked sender; they re-race for capacity under the lock,
so a sender that gave up (timed out) never swallows the wake another one
needed.

Example:
    >>> tx, rx = channel(2)
    >>> block_on(tx.send("a"))
    Ok(None)
    >>> block_on(tx.send_timeout("b", 0.1))
    Ok(None)
    >>> block_on(tx.send_timeout("c", 0.1)) is None  # full: times out
    True
    >>> block_on(rx.recv())
    'a'
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from cogwheel.foundation.errors import (
    ContractViolation,
    Err,
    ErrorCode,
    Ok,
    Result,
    SendError,
    TrySendError,
)
from cogwheel.observability import get_logger

from .future import Future, Pending, Poll, Ready
from .timer import Duration
from .wait import timeout as race_deadline

if TYPE_CHECKING:
    from types import TracebackType

    from .wait import TimeoutResult
    from .waker import Context, Waker

T = TypeVar("T")

log = get_logger("cogwheel.channel")


@dataclass(slots=True)
class _Shared(Generic[T]):
    """State shared by all handles of one channel."""

    capacity: int
    buffer: deque[T] = field(default_factory=deque)
    lock: threading.Lock = field(default_factory=threading.Lock)
    senders: int = 1
    rx_closed: bool = False
    recv_waker: Waker | None = None
    send_wakers: dict[int, Waker] = field(default_factory=dict)

    def take_send_wakers(self) -> list[Waker]:
        """Detach every blocked sender's waker. Caller holds the lock."""
        wakers = list(self.send_wakers.values())
        self.send_wakers.clear()
        return wakers

    def take_recv_waker(self) -> Waker | None:
        """Detach the receiver's waker. Caller holds the lock."""
        waker, self.recv_waker = self.recv_waker, None
        return waker


def _wake_all(wakers: list[Waker]) -> None:
    for waker in wakers:
        waker.wake()


# ─────────────────────────────────────────────────────────────────────────────
# Futures
# ─────────────────────────────────────────────────────────────────────────────


class SendFuture(Future[Result[None, SendError[T]]]):
    """Suspends while the buffer is full; Ok(None) once accepted."""

    __slots__ = ("_shared", "_item")

    def __init__(self, shared: _Shared[T], item: T) -> None:
        self._shared = shared
        self._item = item

    def poll(self, cx: Context) -> Poll[Result[None, SendError[T]]]:
        s = self._shared
        with s.lock:
            s.send_wakers.pop(id(self), None)
            if s.rx_closed:
                return Ready(Err(SendError(self._item)))
            if len(s.buffer) >= s.capacity:
                s.send_wakers[id(self)] = cx.waker.clone()
                log.debug("send blocked", capacity=s.capacity, waiting=len(s.send_wakers))
                return Pending
            s.buffer.append(self._item)
            rx = s.take_recv_waker()
        if rx is not None:
            rx.wake()
        return Ready(Ok(None))

    def cancel(self) -> None:
        """Withdraw from the blocked senders. Call when abandoning a pending send."""
        with self._shared.lock:
            self._shared.send_wakers.pop(id(self), None)


class RecvFuture(Future[Optional[T]]):
    """Suspends while the buffer is empty; None once closed and drained."""

    __slots__ = ("_shared",)

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    def poll(self, cx: Context) -> Poll[T | None]:
        s = self._shared
        with s.lock:
            if not s.buffer:
                if s.senders == 0 or s.rx_closed:
                    return Ready(None)
                s.recv_waker = cx.waker.clone()
                return Pending
            item = s.buffer.popleft()
            blocked = s.take_send_wakers()
        _wake_all(blocked)
        return Ready(item)


# ─────────────────────────────────────────────────────────────────────────────
# Handles
# ─────────────────────────────────────────────────────────────────────────────


class Sender(Generic[T]):
    """Producer handle. Clone for more producers; close each one when done."""

    __slots__ = ("_shared", "_closed")

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared
        self._closed = False

    def clone(self) -> Sender[T]:
        """Another producer handle on the same channel."""
        self._check_open()
        with self._shared.lock:
            self._shared.senders += 1
        return Sender(self._shared)

    def send(self, item: T) -> SendFuture[T]:
        """Future that enqueues ``item``, waiting for capacity as long as it takes."""
        self._check_open()
        return SendFuture(self._shared, item)

    def send_timeout(self, item: T, timeout: Duration) -> Future[Result[None, SendError[T]] | None]:
        """Future that enqueues ``item`` unless ``timeout`` elapses first.

        The budget starts when this method is called.

        Returns:
            Future of Ok(None) when accepted, Err(SendError(item)) when the
            receiver closed first, or None when the timeout elapsed first
        """
        send = self.send(item)

        def settle(outcome: TimeoutResult[Result[None, SendError[T]]]) -> Result[None, SendError[T]] | None:
            if outcome.is_timed_out():
                send.cancel()
            return outcome.ok()

        return race_deadline(timeout, send).map(settle)

    enqueue_with_timeout = send_timeout

    def try_send(self, item: T) -> Result[None, TrySendError[T]]:
        """Enqueue without suspending."""
        self._check_open()
        s = self._shared
        with s.lock:
            if s.rx_closed:
                return Err(TrySendError(item, ErrorCode.CLOSED))
            if len(s.buffer) >= s.capacity:
                return Err(TrySendError(item, ErrorCode.FULL))
            s.buffer.append(item)
            rx = s.take_recv_waker()
        if rx is not None:
            rx.wake()
        return Ok(None)

    def close(self) -> None:
        """Release this handle. Idempotent; the last close ends the stream."""
        if self._closed:
            return
        self._closed = True
        s = self._shared
        with s.lock:
            s.senders -= 1
            rx = s.take_recv_waker() if s.senders == 0 else None
        if rx is not None:
            log.debug("last sender closed", buffered=len(s.buffer))
            rx.wake()

    def is_closed(self) -> bool:
        """Whether the receiver is gone (sends can no longer succeed)."""
        return self._shared.rx_closed

    @property
    def capacity(self) -> int:
        return self._shared.capacity

    def __len__(self) -> int:
        return len(self._shared.buffer)

    def _check_open(self) -> None:
        if self._closed:
            raise ContractViolation("sender handle used after close()")

    def __enter__(self) -> Sender[T]:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Sender(len={len(self)}, capacity={self.capacity}, closed={self._closed})"


class Receiver(Generic[T]):
    """Exclusive consumer handle."""

    __slots__ = ("_shared",)

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    def recv(self) -> RecvFuture[T]:
        """Future of the next item, or None once every sender closed and the buffer drained."""
        return RecvFuture(self._shared)

    dequeue = recv

    def try_recv(self) -> Result[T, ErrorCode]:
        """Take an item without suspending: Err(EMPTY) or Err(CLOSED) otherwise."""
        s = self._shared
        with s.lock:
            if not s.buffer:
                return Err(ErrorCode.CLOSED if s.senders == 0 or s.rx_closed else ErrorCode.EMPTY)
            item = s.buffer.popleft()
            blocked = s.take_send_wakers()
        _wake_all(blocked)
        return Ok(item)

    def close(self) -> None:
        """Refuse further sends; buffered items stay receivable. Idempotent."""
        s = self._shared
        with s.lock:
            if s.rx_closed:
                return
            s.rx_closed = True
            blocked = s.take_send_wakers()
        log.debug("receiver closed", buffered=len(s.buffer), woken=len(blocked))
        _wake_all(blocked)

    def is_closed(self) -> bool:
        """Whether no further items can arrive (receiver closed or no senders left)."""
        return self._shared.rx_closed or self._shared.senders == 0

    @property
    def capacity(self) -> int:
        return self._shared.capacity

    def __len__(self) -> int:
        return len(self._shared.buffer)

    def __enter__(self) -> Receiver[T]:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Receiver(len={len(self)}, capacity={self.capacity})"


def channel(capacity: int) -> tuple[Sender[T], Receiver[T]]:
    """Create a bounded channel.

    Raises:
        ValueError: If capacity < 1
    """
    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, got {capacity}")
    shared: _Shared[T] = _Shared(capacity=capacity)
    return Sender(shared), Receiver(shared)
