"""Suspendable computations advanced one poll at a time.

A Future is a state machine with a single operation, ``poll(cx)``, returning
either ``Ready(value)`` or ``Pending``. Returning ``Pending`` obliges the
future to have handed ``cx.waker`` to whatever event it waits on; the driver
polls again only after that waker fires (or spuriously, which every future
must tolerate by returning ``Pending`` again).

Futures are polled only through a ``Pin``: a handle that claims the future
for its whole lifetime. Combinators pin their children at construction and
reach them through accessor methods, never by reassigning the attribute, so
state built during one poll (a suspended coroutine frame, a registered
waker) always belongs to the same object on the next.

Key Components:
    - Poll: Ready(value) | Pending
    - Future: abstract base, also awaitable from ``async def`` bodies
    - Pin: non-relocatable polling handle with completion tracking
    - ready / pending / poll_fn: leaf futures
    - into_future: accepts a Future or a coroutine

Example:
    >>> async def work() -> int:
    ...     await wait_for(0.1)
    ...     return 100
    >>> block_on(work())
    100
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Coroutine, Generator
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final, Generic, TypeAlias, TypeVar, Union

from cogwheel.foundation.errors import ContractViolation

if TYPE_CHECKING:
    from .waker import Context

T = TypeVar("T")
U = TypeVar("U")
F = TypeVar("F", bound="Future[object]")

# Context of the poll currently in progress on this thread (coroutine bridge)
_current_cx: ContextVar[Context | None] = ContextVar("current_cx", default=None)


# ─────────────────────────────────────────────────────────────────────────────
# Poll
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Ready(Generic[T]):
    """The future produced its value."""

    value: T

    def is_ready(self) -> bool:
        return True

    def is_pending(self) -> bool:
        return False

    def map(self, f: Callable[[T], U]) -> Ready[U]:
        return Ready(f(self.value))

    def unwrap(self) -> T:
        return self.value


class _PendingType:
    """Not ready yet; a wake has been arranged."""

    __slots__ = ()
    _instance: _PendingType | None = None

    def __new__(cls) -> _PendingType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def is_ready(self) -> bool:
        return False

    def is_pending(self) -> bool:
        return True

    def map(self, f: Callable[[object], object]) -> _PendingType:
        return self

    def unwrap(self) -> object:
        raise ContractViolation("unwrap() on Pending")

    def __repr__(self) -> str:
        return "Pending"

    def __reduce__(self) -> str:
        return "Pending"


Pending: Final = _PendingType()

Poll: TypeAlias = Union[Ready[T], _PendingType]


# ─────────────────────────────────────────────────────────────────────────────
# Future
# ─────────────────────────────────────────────────────────────────────────────


class Future(ABC, Generic[T]):
    """A computation that advances through discrete poll steps.

    Subclasses implement ``poll``. They must not be polled directly by user
    code; wrap them in a ``Pin`` (``block_on`` and the combinators do this).
    Awaiting a Future inside a coroutine driven by this runtime pins it and
    polls it with the context of the enclosing poll.
    """

    __slots__ = ("_pin_claimed",)

    @abstractmethod
    def poll(self, cx: Context) -> Poll[T]:
        """Advance one step. Return Ready(value), or Pending after arranging a wake."""

    def map(self, f: Callable[[T], U]) -> Map[T, U]:
        """Future of ``f(value)``."""
        return Map(self, f)

    def __await__(self) -> Generator[None, None, T]:
        pinned = Pin(self)
        while True:
            match pinned.poll(current_context()):
                case Ready(value):
                    return value
            yield


class Pin(Generic[F]):
    """Non-relocatable handle through which a future is polled.

    Claims the future on creation and for good: the same future cannot be
    pinned twice, even once the first pin is gone, and a pin that returned
    Ready refuses further polls. Both checks raise
    ContractViolation; correct programs never trigger them.
    """

    __slots__ = ("_future", "_done")

    def __init__(self, future: F) -> None:
        if not isinstance(future, Future):
            raise TypeError(f"Pin requires a Future, got {type(future).__name__}")
        if getattr(future, "_pin_claimed", False):
            raise ContractViolation(f"{type(future).__name__} is already pinned")
        future._pin_claimed = True
        self._future = future
        self._done = False

    @property
    def done(self) -> bool:
        """Whether poll() has returned Ready."""
        return self._done

    def get(self) -> F:
        """Read access to the pinned future (for inspection only)."""
        return self._future

    def poll(self, cx: Context) -> Poll[object]:
        if self._done:
            raise ContractViolation(f"{type(self._future).__name__} polled after completion")
        result = self._future.poll(cx)
        if isinstance(result, Ready):
            self._done = True
        return result

    def __repr__(self) -> str:
        return f"Pin({self._future!r}, done={self._done})"


# ─────────────────────────────────────────────────────────────────────────────
# Leaf futures
# ─────────────────────────────────────────────────────────────────────────────


class Immediate(Future[T]):
    """Ready on the first poll."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    def poll(self, cx: Context) -> Poll[T]:
        return Ready(self._value)

    def __repr__(self) -> str:
        return f"ready({self._value!r})"


class Never(Future[T]):
    """Pending forever. Registers no waker since nothing will ever wake it."""

    __slots__ = ()

    def poll(self, cx: Context) -> Poll[T]:
        return Pending

    def __repr__(self) -> str:
        return "pending()"


class PollFn(Future[T]):
    """Future whose poll delegates to a plain function."""

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[Context], Poll[T]]) -> None:
        self._fn = fn

    def poll(self, cx: Context) -> Poll[T]:
        return self._fn(cx)


class Map(Future[U], Generic[T, U]):
    """Apply a function to the output of an inner future."""

    __slots__ = ("_inner", "_fn")

    def __init__(self, inner: Future[T], fn: Callable[[T], U]) -> None:
        self._inner = Pin(inner)
        self._fn = fn

    def inner(self) -> Pin[Future[T]]:
        return self._inner

    def poll(self, cx: Context) -> Poll[U]:
        return self.inner().poll(cx).map(self._fn)  # type: ignore[return-value]


class CoroutineFuture(Future[T]):
    """Drives an ``async def`` coroutine as a Future.

    The coroutine frame refers to its own locals across suspensions, which is
    why it must stay with one pin for its whole life. Each poll resumes the
    frame with ``cx`` installed as the current context; awaiting anything
    other than a cogwheel Future is rejected.
    """

    __slots__ = ("_coro",)

    def __init__(self, coro: Coroutine[object, object, T]) -> None:
        self._coro = coro

    def poll(self, cx: Context) -> Poll[T]:
        token = _current_cx.set(cx)
        try:
            yielded = self._coro.send(None)
        except StopIteration as stop:
            return Ready(stop.value)
        finally:
            _current_cx.reset(token)
        if yielded is not None:
            self._coro.close()
            raise ContractViolation(
                f"coroutine awaited {type(yielded).__name__}, which this runtime cannot drive"
            )
        return Pending

    def __repr__(self) -> str:
        return f"CoroutineFuture({getattr(self._coro, '__qualname__', self._coro)!r})"


def ready(value: T) -> Immediate[T]:
    """Future that is ready immediately with ``value``."""
    return Immediate(value)


def pending() -> Never[T]:
    """Future that never completes."""
    return Never()


def poll_fn(fn: Callable[[Context], Poll[T]]) -> PollFn[T]:
    """Future built from a poll function."""
    return PollFn(fn)


def into_future(obj: Future[T] | Coroutine[object, object, T]) -> Future[T]:
    """Normalize a Future or coroutine into a Future.

    Raises:
        TypeError: For anything else (including already-wrapped awaitables
            from other event loops)
    """
    if isinstance(obj, Future):
        return obj
    if inspect.iscoroutine(obj):
        return CoroutineFuture(obj)
    raise TypeError(f"expected a Future or coroutine, got {type(obj).__name__}")


def current_context() -> Context:
    """Context of the poll in progress.

    Raises:
        ContractViolation: When called outside a runtime poll
    """
    if (cx := _current_cx.get()) is None:
        raise ContractViolation("no poll in progress; await cogwheel futures only under block_on")
    return cx
