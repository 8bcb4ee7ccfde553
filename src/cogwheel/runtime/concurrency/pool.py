"""Bounded task pool: a channel with a default enqueue deadline.

Producers hand tasks over with ``create``, which gives up (returns None) if
the pool stays full for ``enqueue_timeout``. A consumer pulls them in FIFO
order with ``pull_task``, which resolves to None once every producer handle
is closed and the queue is drained.

Key Features:
    - Backpressure: full pool suspends producers instead of growing
    - Timed enqueue with a per-pool default from QueueSettings
    - Extra producers via ``sender()``; each must be closed
    - Context manager closes the pool's own producer handle

Example:
    >>> pool = TaskPool(queue_size=2)
    >>> block_on(pool.create("a"))
    Ok(None)
    >>> block_on(pool.create("b"))
    Ok(None)
    >>> block_on(pool.create("c")) is None  # full: gives up after ~100 ms
    True
    >>> block_on(pool.pull_task())
    'a'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from cogwheel.foundation.config import get_settings
from cogwheel.observability import get_logger

from .channel import Receiver, RecvFuture, Sender, channel

if TYPE_CHECKING:
    from types import TracebackType

    from cogwheel.foundation.errors import ErrorCode, Result, SendError

    from .future import Future
    from .timer import Duration

T = TypeVar("T")

__all__ = ["TaskPool"]

log = get_logger("cogwheel.pool")


@dataclass(slots=True)
class TaskPool(Generic[T]):
    """Bounded FIFO of tasks with timed enqueue.

    Args:
        queue_size: Maximum number of buffered tasks (defaults to
            QueueSettings.default_capacity)
        enqueue_timeout: Seconds ``create`` waits for a free slot (defaults
            to QueueSettings.enqueue_timeout)
    """

    queue_size: int | None = None
    enqueue_timeout: float | None = None
    _sender: Sender[T] = field(init=False, repr=False)
    _receiver: Receiver[T] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        queue = get_settings().queue
        if self.queue_size is None:
            self.queue_size = queue.default_capacity
        if self.enqueue_timeout is None:
            self.enqueue_timeout = queue.enqueue_timeout
        if self.enqueue_timeout < 0:
            raise ValueError("enqueue_timeout must be >= 0")
        self._sender, self._receiver = channel(self.queue_size)
        log.debug("task pool created", capacity=self.queue_size, enqueue_timeout=self.enqueue_timeout)

    def create(self, task: T) -> Future[Result[None, SendError[T]] | None]:
        """Enqueue ``task`` within the pool's default timeout.

        Returns:
            Future of Ok(None) when accepted, Err(SendError) when the
            consumer side closed, None when the pool stayed full
        """
        return self._sender.send_timeout(task, self.enqueue_timeout)  # type: ignore[arg-type]

    def enqueue_with_timeout(self, task: T, timeout: Duration) -> Future[Result[None, SendError[T]] | None]:
        """Enqueue ``task`` within an explicit timeout, measured from this call."""
        return self._sender.send_timeout(task, timeout)

    def pull_task(self) -> RecvFuture[T]:
        """Future of the next task, or None once closed and drained."""
        return self._receiver.recv()

    dequeue = pull_task

    def try_pull(self) -> Result[T, ErrorCode]:
        """Non-suspending pull: Ok(task), Err(EMPTY) or Err(CLOSED)."""
        return self._receiver.try_recv()

    def sender(self) -> Sender[T]:
        """Additional producer handle; close it when done producing."""
        return self._sender.clone()

    @property
    def receiver(self) -> Receiver[T]:
        return self._receiver

    @property
    def capacity(self) -> int:
        return self._receiver.capacity

    def close(self) -> None:
        """Close the pool's own producer handle. Idempotent."""
        self._sender.close()

    def shutdown(self) -> None:
        """Close both ends: pending and future enqueues fail with Err(SendError)."""
        self._sender.close()
        self._receiver.close()

    def __len__(self) -> int:
        return len(self._receiver)

    def __enter__(self) -> TaskPool[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
