"""Wait strategies built from poll-level combinators.

    - timeout: race a future against a deadline; completion wins ties
    - join_all: wait for every future, outputs in input order

Both poll their children with the context they were polled with, so any
child's wake re-polls the whole combinator. Neither blocks the polling
thread.

Example:
    >>> # Bound an operation that might never finish
    >>> match block_on(timeout(0.123, pending())):
    ...     case Completed(value): print(value)
    ...     case _: print("gave up")
    gave up

    >>> # Fan out ten delays inside one run loop
    >>> block_on(join_all(*(wait_for(0.01) for _ in range(10))))
"""

from __future__ import annotations

from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Generic, TypeAlias, TypeVar, Union

from cogwheel.foundation.errors import CogwheelError, ErrorCode
from cogwheel.observability import get_logger

from .future import Future, Pending, Pin, Poll, Ready, into_future
from .timer import Duration, Sleep

if TYPE_CHECKING:
    from .waker import Context

T = TypeVar("T")

log = get_logger("cogwheel.wait")


# ─────────────────────────────────────────────────────────────────────────────
# Race outcome
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Completed(Generic[T]):
    """The watched future finished before the deadline."""

    value: T

    def is_completed(self) -> bool:
        return True

    def is_timed_out(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def ok(self) -> T | None:
        return self.value


class _TimedOutType:
    """The deadline passed while the watched future was still pending."""

    __slots__ = ()
    _instance: _TimedOutType | None = None

    def __new__(cls) -> _TimedOutType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def is_completed(self) -> bool:
        return False

    def is_timed_out(self) -> bool:
        return True

    def unwrap(self) -> object:
        """Raises CogwheelError(TIMEOUT); use ok() or match to avoid raising."""
        raise CogwheelError("deadline elapsed before completion", ErrorCode.TIMEOUT)

    def ok(self) -> None:
        return None

    def __repr__(self) -> str:
        return "TimedOut"

    def __reduce__(self) -> str:
        return "TimedOut"


TimedOut: Final = _TimedOutType()

TimeoutResult: TypeAlias = Union[Completed[T], _TimedOutType]


# ─────────────────────────────────────────────────────────────────────────────
# Timeout: watched future vs deadline
# ─────────────────────────────────────────────────────────────────────────────


class Timeout(Future[TimeoutResult[T]]):
    """Race one future against a Sleep.

    Per poll: the watched future first; if it is Ready the result is
    Completed and the timer is not consulted, even when it has also expired.
    Only a pending watched future lets the timer decide between TimedOut
    and Pending. Both children are owned and pinned here for the
    combinator's lifetime.
    """

    __slots__ = ("_future", "_sleep")

    def __init__(self, future: Future[T], sleep: Sleep) -> None:
        self._future: Pin[Future[T]] = Pin(future)
        self._sleep: Pin[Sleep] = Pin(sleep)

    def future(self) -> Pin[Future[T]]:
        """Pinned watched future."""
        return self._future

    def sleep(self) -> Pin[Sleep]:
        """Pinned deadline timer."""
        return self._sleep

    def poll(self, cx: Context) -> Poll[TimeoutResult[T]]:
        match self.future().poll(cx):
            case Ready(value):
                return Ready(Completed(value))

        match self.sleep().poll(cx):
            case Ready():
                log.debug("deadline elapsed", future=type(self._future.get()).__name__)
                return Ready(TimedOut)
        return Pending

    def __repr__(self) -> str:
        return f"Timeout({self._future.get()!r}, {self._sleep.get()!r})"


def timeout(
    duration: Duration,
    future: Future[T] | Coroutine[object, object, T],
) -> Timeout[T]:
    """Race ``future`` against ``duration`` (seconds or timedelta).

    The deadline is fixed now, at call time, not at the first poll.

    Args:
        duration: Time budget
        future: Future or coroutine to watch

    Returns:
        Future of Completed(value) or TimedOut

    Example:
        >>> block_on(timeout(0.123, ready(0)))
        Completed(value=0)
    """
    watched = into_future(future)
    return Timeout(watched, Sleep(duration))


# ─────────────────────────────────────────────────────────────────────────────
# Join: wait for all
# ─────────────────────────────────────────────────────────────────────────────

_UNSET: Final = object()


class JoinAll(Future[list[T]]):
    """Poll every unfinished child on each poll; Ready once all are."""

    __slots__ = ("_children", "_outputs")

    def __init__(self, futures: list[Future[T]]) -> None:
        self._children: list[Pin[Future[T]]] = [Pin(f) for f in futures]
        self._outputs: list[object] = [_UNSET] * len(futures)

    def children(self) -> list[Pin[Future[T]]]:
        return self._children

    def poll(self, cx: Context) -> Poll[list[T]]:
        for idx, child in enumerate(self.children()):
            if child.done:
                continue
            match child.poll(cx):
                case Ready(value):
                    self._outputs[idx] = value
        if any(out is _UNSET for out in self._outputs):
            return Pending
        return Ready(list(self._outputs))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._children)


def join_all(*futures: Future[T] | Coroutine[object, object, T]) -> JoinAll[T]:
    """Wait for all futures, preserving input order. Empty input is Ready at once."""
    return JoinAll([into_future(f) for f in futures])
