"""Configuration management using pydantic-settings."""

from .settings import (
    CogwheelSettings,
    LoggingSettings,
    QueueSettings,
    RuntimeSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CogwheelSettings",
    "LoggingSettings",
    "QueueSettings",
    "RuntimeSettings",
    "clear_settings_cache",
    "get_settings",
]
