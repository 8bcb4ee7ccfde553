"""Error codes and exceptions for the task substrate.

Timeouts and closed channels are ordinary outcomes and travel as values
(``TimedOut``, ``None``, ``Err(SendError)``). Exceptions are reserved for
contract violations: polling a finished future, pinning a future twice,
asking for the current context outside a poll.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(StrEnum):
    """Machine-readable classification of substrate failures."""
    TIMEOUT = "TIMEOUT"
    CLOSED = "CLOSED"
    FULL = "FULL"
    EMPTY = "EMPTY"
    MISUSE = "MISUSE"


class CogwheelError(Exception):
    """Base exception carrying an ErrorCode."""

    __slots__ = ("code",)

    code: ErrorCode

    def __init__(self, message: str, code: ErrorCode = ErrorCode.MISUSE) -> None:
        self.code = code
        super().__init__(message)


class ContractViolation(CogwheelError):
    """Raised when a future or pin is used against its protocol.

    Correct programs never see this; it is detected on a best-effort basis
    and is not meant to be caught and recovered from.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.MISUSE)


@dataclass(slots=True, frozen=True)
class SendError(Generic[T]):
    """The receiving side was closed before ``item`` was accepted.

    Returns the item to the producer, which still owns it.
    """

    item: T

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.CLOSED

    def __str__(self) -> str:
        return "sending on a closed channel"


@dataclass(slots=True, frozen=True)
class TrySendError(Generic[T]):
    """Non-suspending send failed: buffer full or channel closed."""

    item: T
    code: ErrorCode

    @property
    def is_full(self) -> bool:
        return self.code == ErrorCode.FULL

    @property
    def is_closed(self) -> bool:
        return self.code == ErrorCode.CLOSED

    def __str__(self) -> str:
        return "no available capacity" if self.is_full else "sending on a closed channel"
