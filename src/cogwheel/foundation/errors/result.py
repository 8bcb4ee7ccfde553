"""Result type for expected, non-fatal failures.

The queue reports "receiver gone" as an ``Err`` carrying the rejected item
instead of raising, so a producer can recover the payload:

    >>> match block_on(tx.send(job)):
    ...     case Ok(): pass
    ...     case Err(SendError(item)): retry_later(item)

``Ok`` and ``Err`` are frozen slotted dataclasses sharing the ``Result``
base, so they compare, hash and destructure structurally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Either ``Ok(value)`` or ``Err(error)``.

    Examples:
        >>> Ok(2).map(lambda x: x + 1)
        Ok(3)
        >>> Err("closed").unwrap_or(0)
        0
    """

    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    # ─── Extraction ──────────────────────────────────────────────────────

    def unwrap(self) -> T:
        """The Ok value. Raises RuntimeError on Err."""
        match self:
            case Ok(value):
                return value
            case Err(error):
                raise RuntimeError(f"unwrap() on Err: {error!r}")
        raise TypeError(type(self).__name__)

    def unwrap_err(self) -> E:
        """The Err value. Raises RuntimeError on Ok."""
        match self:
            case Err(error):
                return error
            case Ok(value):
                raise RuntimeError(f"unwrap_err() on Ok: {value!r}")
        raise TypeError(type(self).__name__)

    def unwrap_or(self, default: T) -> T:
        return self.value if isinstance(self, Ok) else default

    def ok(self) -> T | None:
        """The Ok value, or None for Err."""
        return self.value if isinstance(self, Ok) else None

    def err(self) -> E | None:
        """The Err value, or None for Ok."""
        return self.error if isinstance(self, Err) else None

    # ─── Combinators ─────────────────────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return Ok(f(self.value)) if isinstance(self, Ok) else self  # type: ignore[return-value]

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return Err(f(self.error)) if isinstance(self, Err) else self  # type: ignore[return-value]

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain a step that can itself fail; Err short-circuits."""
        return f(self.value) if isinstance(self, Ok) else self  # type: ignore[return-value]

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Fold both cases into one value."""
        return ok(self.value) if isinstance(self, Ok) else err(self.error)  # type: ignore[attr-defined]

    def __bool__(self) -> bool:
        return isinstance(self, Ok)

    def __iter__(self) -> Iterator[T]:
        """One item for Ok, none for Err."""
        if isinstance(self, Ok):
            yield self.value


@dataclass(slots=True, frozen=True, repr=False)
class Ok(Result[T, E]):
    """Success."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(slots=True, frozen=True, repr=False)
class Err(Result[T, E]):
    """Expected failure."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"
