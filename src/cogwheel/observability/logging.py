"""Structured logging for the runtime.

Every entry records the name of the thread that emitted it. Most of the
interesting events of a run (timer fired, send blocked, last sender closed)
happen on timer workers or producer threads rather than on the thread
inside ``block_on``, so the thread name is part of the entry, not context.

Renderer and threshold are process-wide. Worker threads do not inherit the
driver's contextvars, so ``log_context`` fields only reach entries emitted
on the thread that opened the scope.

Output:
    console  12:00:01.250 DEBUG cogwheel-timer-3 | timer fired logger=cogwheel.timer timer=WaitFor
    json     {"ts": "...", "level": "debug", "event": "timer fired", "thread": "cogwheel-timer-3", ...}

Quick Start:
    >>> from cogwheel.observability import configure_logging, get_logger
    >>> configure_logging(format="console", level="DEBUG")
    >>> log = get_logger("cogwheel.pool")
    >>> log.debug("enqueue blocked", capacity=2)
"""

from __future__ import annotations

import logging
import sys
import threading
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

from cogwheel.foundation.errors import JsonDict, JsonValue

if TYPE_CHECKING:
    from cogwheel.foundation.config import LoggingSettings

_scope: ContextVar[JsonDict] = ContextVar("cogwheel_log_scope", default={})

_LEVEL_NAMES = {logging.DEBUG: "debug", logging.INFO: "info", logging.WARNING: "warning",
                logging.ERROR: "error", logging.CRITICAL: "critical"}


# ─────────────────────────────────────────────────────────────────────────────
# Entries and renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One rendered event: bound context, scope fields and call fields merged."""

    timestamp: float
    level: str
    event: str
    context: JsonDict
    thread: str = ""

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat(timespec="milliseconds")

    @property
    def ts_human(self) -> str:
        """Local HH:MM:SS.mmm"""
        millis = int(self.timestamp % 1 * 1000)
        return f"{time.strftime('%H:%M:%S', time.localtime(self.timestamp))}.{millis:03d}"


@runtime_checkable
class LogRenderer(Protocol):
    """Sink for log entries."""

    def render(self, entry: LogEntry) -> None: ...


_ANSI = {"dim": "2", "bold": "1", "red": "31", "green": "32", "yellow": "33", "cyan": "36"}
_LEVEL_STYLE = {"debug": "dim", "info": "green", "warning": "yellow", "error": "red", "critical": "red"}


def _paint(style: str, text: str) -> str:
    return f"\033[{_ANSI[style]}m{text}\033[0m"


def _plain(style: str, text: str) -> str:
    return text


def _format_value(v: object) -> str:
    """Compact value rendering: bare tokens where unambiguous, quoted otherwise."""
    match v:
        case None: return "null"
        case bool(): return "true" if v else "false"
        case float(): return f"{v:.6g}"
        case int(): return str(v)
        case str() if v and not any(ch in v for ch in ' ="'): return v
        case str(): return repr(v)
        case dict() | list() | tuple(): return orjson.dumps(v, default=repr).decode()
        case _: return repr(v)


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable lines: ``time LEVEL thread | event key=value ...``."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None: colour only when writing to a terminal
    show_timestamp: bool = True
    show_thread: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def render(self, entry: LogEntry) -> None:
        paint = _paint if self.colors else _plain
        head = [paint("dim", entry.ts_human)] if self.show_timestamp else []
        head.append(paint(_LEVEL_STYLE.get(entry.level, "dim"), entry.level.upper().ljust(5)))
        if self.show_thread and entry.thread:
            head.append(paint("dim", entry.thread))
        fields = " ".join(f"{paint('cyan', k)}={_format_value(v)}"
                          for k, v in sorted(entry.context.items()) if k != "exc_info")
        line = f"{' '.join(head)} | {paint('bold', entry.event)}"
        if fields:
            line = f"{line} {fields}"
        if (exc := entry.context.get("exc_info")) is not None:
            line = f"{line}\n{paint('red', str(exc).rstrip())}"
        self.output.write(line + "\n")


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line, for log shippers."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        record = {"ts": entry.ts_iso, "level": entry.level, "event": entry.event,
                  "thread": entry.thread, **entry.context}
        # one write per entry keeps lines whole when workers log concurrently
        self.output.write(orjson.dumps(
            record, default=repr, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE,
        ).decode())


@dataclass(slots=True)
class NoOpRenderer:
    """Discards everything."""

    def render(self, entry: LogEntry) -> None:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class _LoggingState:
    renderer: LogRenderer | None = None
    level: int = logging.INFO
    lock: threading.RLock = field(default_factory=threading.RLock)

    def current(self) -> LogRenderer:
        """Configured renderer; the first use configures from settings."""
        if self.renderer is None:
            with self.lock:
                if self.renderer is None:
                    configure_from_settings()
        return self.renderer  # type: ignore[return-value]

    def threshold(self) -> int:
        self.current()
        return self.level


_state = _LoggingState()


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    parsed = logging.getLevelName(level.upper())
    if not isinstance(parsed, int):
        raise ValueError(f"unknown log level {level!r}")
    return parsed


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str | int = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the process-wide renderer and threshold.

    Args:
        format: "console", "json" or "none"
        level: Level name (case-insensitive) or number
        output: Stream to write to (console: stderr, json: stdout)
        colors: Force ANSI colours on or off for the console renderer

    Returns:
        The installed renderer

    Raises:
        ValueError: For an unknown format or level
    """
    match format:
        case "console":
            renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json":
            renderer = JsonRenderer(output=output or sys.stdout)
        case "none":
            renderer = NoOpRenderer()
        case other:
            raise ValueError(f"unknown log format {other!r}; expected 'console', 'json' or 'none'")
    threshold = _parse_level(level)
    with _state.lock:
        _state.renderer, _state.level = renderer, threshold
    return renderer


def configure_from_settings(settings: LoggingSettings | None = None, *, debug: bool = False) -> LogRenderer:
    """Configure from LoggingSettings; with no argument, from the global settings."""
    if settings is None:
        from cogwheel.foundation.config import get_settings
        root = get_settings()
        return configure_logging(root.logging.format, "DEBUG" if debug else root.log_level)
    return configure_logging(settings.format, "DEBUG" if debug else settings.level)


def reset_logging() -> None:
    """Drop the installed configuration; the next entry re-reads settings."""
    with _state.lock:
        _state.renderer, _state.level = None, logging.INFO


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Logger carrying a fixed set of context fields.

    Immutable in use: ``bind`` and ``unbind`` return new loggers. With no
    explicit renderer or level it follows the process-wide configuration,
    so module-level loggers pick up a later ``configure_logging`` call.

    Example:
        >>> log = get_logger("cogwheel.timer").bind(timer="WaitFor")
        >>> log.debug("worker spawned", delay=0.1)
        # 10:30:45.120 DEBUG cogwheel-timer-1 | worker spawned delay=0.1 logger=cogwheel.timer timer=WaitFor
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return replace(self, context={**self.context, **kw})

    def unbind(self, *keys: str) -> BoundLogger:
        return replace(self, context={k: v for k, v in self.context.items() if k not in keys})

    def is_enabled_for(self, level: int) -> bool:
        threshold = _state.threshold() if self._level is None else self._level
        return level >= threshold

    def log(self, level: int, event: str, **kw: JsonValue) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(
            timestamp=time.time(),
            level=_LEVEL_NAMES.get(level) or logging.getLevelName(level).lower(),
            event=event,
            context={**_scope.get(), **self.context, **kw},
            thread=threading.current_thread().name,
        )
        (self._renderer or _state.current()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """Error-level entry with the active traceback under ``exc_info``."""
        self.log(logging.ERROR, event, exc_info=traceback.format_exc(), **kw)


def get_logger(name: str | None = None, **context: JsonValue) -> BoundLogger:
    """Logger bound to ``context``, plus ``logger=name`` when a name is given."""
    if name:
        context["logger"] = name
    return BoundLogger(context=context)


@contextmanager
def log_context(**fields: JsonValue) -> Iterator[None]:
    """Add ``fields`` to every entry logged on this thread inside the block."""
    token = _scope.set({**_scope.get(), **fields})
    try:
        yield
    finally:
        _scope.reset(token)
