"""Error handling: Result type, error codes, substrate exceptions."""

from typing import Any, Union

from .errors import CogwheelError, ContractViolation, ErrorCode, SendError, TrySendError
from .result import Err, Ok, Result

# JSON-ish value aliases shared with structured logging
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

__all__ = [
    "CogwheelError",
    "ContractViolation",
    "ErrorCode",
    "SendError",
    "TrySendError",
    "Result",
    "Ok",
    "Err",
    "JsonPrimitive",
    "JsonValue",
    "JsonDict",
]
