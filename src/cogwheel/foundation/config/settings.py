"""Environment-based configuration using pydantic-settings.

Example:
    >>> from cogwheel.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.queue.enqueue_timeout
    0.1

    # Or with environment variables:
    # COGWHEEL_QUEUE_ENQUEUE_TIMEOUT=0.25
    # COGWHEEL_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):
    """Run loop and timer worker configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COGWHEEL_RUNTIME_",
        extra="ignore",
    )

    timer_thread_prefix: str = Field(
        default="cogwheel-timer",
        min_length=1,
        description="Name prefix for detached timer worker threads",
    )
    park_timeout: PositiveFloat | None = Field(
        default=None,
        description="Upper bound for a single park in block_on; None parks until woken",
    )


class QueueSettings(BaseSettings):
    """Bounded task queue defaults."""

    model_config = SettingsConfigDict(
        env_prefix="COGWHEEL_QUEUE_",
        extra="ignore",
    )

    enqueue_timeout: PositiveFloat = Field(default=0.1, description="TaskPool.create timeout in seconds")
    default_capacity: PositiveInt = Field(default=2, description="TaskPool capacity when none is given")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COGWHEEL_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class CogwheelSettings(BaseSettings):
    """Root settings, loaded from COGWHEEL_* environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="COGWHEEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug logging of poll steps")

    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def log_level(self) -> str:
        """Effective log level; debug mode forces DEBUG."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> CogwheelSettings:
    """Get the global settings instance (cached)."""
    return CogwheelSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
