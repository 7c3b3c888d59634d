"""Terminal logging for worktree commands.

Everything goes to stderr so ``worktree open --print-path`` leaves stdout
holding only the workspace path.
"""

import os
import sys
from contextlib import AbstractContextManager, nullcontext
from enum import IntEnum

from rich.console import Console
from rich.text import Text


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    SUCCESS = 25
    WARNING = 30
    ERROR = 40


_LEVEL_BY_NAME = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "success": LogLevel.SUCCESS,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "error": LogLevel.ERROR,
}
_STYLE = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}
_configured_level: LogLevel | None = None


def _normalize_level(value: str | None) -> LogLevel:
    if not value or not value.strip():
        return LogLevel.INFO
    return _LEVEL_BY_NAME.get(value.strip().lower(), LogLevel.INFO)


def configured_level() -> LogLevel:
    global _configured_level
    if _configured_level is None:
        _configured_level = _normalize_level(os.environ.get("WORKTREE_LOG_LEVEL"))
    return _configured_level


def set_level(value: str | None) -> None:
    global _configured_level
    _configured_level = _normalize_level(value)


def _console() -> Console:
    # Built per call so test runners that swap sys.stderr still capture output.
    return Console(
        file=sys.stderr,
        soft_wrap=True,
        highlight=False,
        no_color=bool(os.environ.get("NO_COLOR")),
    )


def emit(level: LogLevel, message: str) -> None:
    if level < configured_level():
        return
    _console().print(Text(message, style=_STYLE[level]))


def debug(message: str) -> None:
    emit(LogLevel.DEBUG, message)


def info(message: str) -> None:
    emit(LogLevel.INFO, message)


def success(message: str) -> None:
    emit(LogLevel.SUCCESS, f"✓ {message}")


def warning(message: str) -> None:
    emit(LogLevel.WARNING, f"Warning: {message}")


def error(message: str) -> None:
    emit(LogLevel.ERROR, f"error: {message}")


def status(message: str) -> AbstractContextManager[object]:
    """Spinner on stderr for a long-running step. Silent below info level."""
    if LogLevel.INFO < configured_level():
        return nullcontext()
    return _console().status(message)
