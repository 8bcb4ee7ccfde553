"""Foundation - configuration and error handling shared by the runtime."""

from .config import CogwheelSettings, clear_settings_cache, get_settings
from .errors import (
    CogwheelError,
    ContractViolation,
    Err,
    ErrorCode,
    Ok,
    Result,
    SendError,
    TrySendError,
)

__all__ = [
    "CogwheelSettings",
    "clear_settings_cache",
    "get_settings",
    "CogwheelError",
    "ContractViolation",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "SendError",
    "TrySendError",
]
