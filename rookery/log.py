"""Leveled logging with a replaceable process-wide handler."""

from __future__ import annotations

import sys
import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, TextIO


class LogLevel(IntEnum):
    """Severity of a log message; higher values are more severe."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


_PREFIXES = {
    LogLevel.DEBUG: "DEBUG   ",
    LogLevel.INFO: "INFO    ",
    LogLevel.WARNING: "WARNING ",
    LogLevel.ERROR: "ERROR   ",
    LogLevel.CRITICAL: "CRITICAL",
}


class LogHandler(ABC):
    """Receives every message that passes the current log level."""

    @abstractmethod
    def log(self, message: str, level: LogLevel) -> None:
        """Emit a single formatted message."""


class StderrLogHandler(LogHandler):
    """Writes ``(timestamp) [LEVEL] message`` lines to standard error."""

    def __init__(self, stream: TextIO | None = None, local_time: bool = False) -> None:
        self._stream = stream
        self._local_time = local_time

    def _timestamp(self) -> str:
        now = time.time()
        moment = time.localtime(now) if self._local_time else time.gmtime(now)
        return time.strftime("%Y-%m-%d %H:%M:%S", moment)

    def log(self, message: str, level: LogLevel) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        prefix = _PREFIXES[LogLevel(level)]
        stream.write(f"({self._timestamp()}) [{prefix}] {message}\n")
        stream.flush()


class Logger:
    """Process-wide logging configuration: the threshold level and the handler."""

    _level: LogLevel = LogLevel.INFO
    _handler: LogHandler = StderrLogHandler()

    @staticmethod
    def set_log_level(level: LogLevel | int) -> None:
        """Set the minimum level a message needs to be emitted."""
        Logger._level = LogLevel(level)

    @staticmethod
    def set_handler(handler: LogHandler) -> None:
        """Replace the handler that receives emitted messages."""
        Logger._handler = handler

    @staticmethod
    def get_current_log_level() -> LogLevel:
        """Return the current threshold level."""
        return Logger._level


def log(level: LogLevel | int, message: Any) -> None:
    """Send ``message`` to the handler if ``level`` reaches the threshold."""
    level = LogLevel(level)
    if level >= Logger.get_current_log_level():
        Logger._handler.log(str(message), level)


def debug(message: Any) -> None:
    """Log at DEBUG level."""
    log(LogLevel.DEBUG, message)


def info(message: Any) -> None:
    """Log at INFO level."""
    log(LogLevel.INFO, message)


def warning(message: Any) -> None:
    """Log at WARNING level."""
    log(LogLevel.WARNING, message)


def error(message: Any) -> None:
    """Log at ERROR level."""
    log(LogLevel.ERROR, message)


def critical(message: Any) -> None:
    """Log at CRITICAL level."""
    log(LogLevel.CRITICAL, message)