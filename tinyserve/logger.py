"""Leveled logging front end with pluggable output and flush callbacks."""

from __future__ import annotations

import os
import sys
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

from tinyserve.log_stream import LogStream, format_value
from tinyserve.timestamp import MICROSECONDS_PER_SECOND, Timestamp

OutputFunc = Callable[[bytes], None]
FlushFunc = Callable[[], None]


class LogLevel(IntEnum):
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5


LEVEL_NAMES = {
    LogLevel.TRACE: "TRACE ",
    LogLevel.DEBUG: "DEBUG ",
    LogLevel.INFO: "INFO  ",
    LogLevel.WARN: "WARN  ",
    LogLevel.ERROR: "ERROR ",
    LogLevel.FATAL: "FATAL ",
}


class FatalLogError(RuntimeError):
    """Raised after a FATAL record has been written and flushed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _default_output(data: bytes) -> None:
    sys.stdout.write(data.decode("utf-8", errors="replace"))


def _default_flush() -> None:
    sys.stdout.flush()


@dataclass
class _Settings:
    enabled: bool = True
    level: LogLevel = LogLevel.INFO
    output: OutputFunc = _default_output
    flush: FlushFunc = _default_flush


_settings = _Settings()
_time_cache = threading.local()


def source_basename(path: str) -> str:
    """Strip the directory part of a source path."""
    return path.rsplit("/", 1)[-1]


def strerror(saved_errno: int) -> str:
    return os.strerror(saved_errno)


def enable_logger(enable: bool) -> None:
    _settings.enabled = enable


def set_log_level(level: LogLevel) -> None:
    _settings.level = LogLevel(level)


def get_log_level() -> LogLevel:
    return _settings.level


def set_output(func: OutputFunc) -> None:
    _settings.output = func


def set_flush(func: FlushFunc) -> None:
    _settings.flush = func


def reset_output() -> None:
    """Restore writing to standard output."""
    _settings.output = _default_output
    _settings.flush = _default_flush


class Logger:
    """One log record: header written on creation, trailer and output on finish()."""

    def __init__(
        self,
        file: str,
        line: int,
        level: LogLevel = LogLevel.INFO,
        func: Optional[str] = None,
        saved_errno: int = 0,
    ) -> None:
        self.time = Timestamp.now()
        self.level = LogLevel(level)
        self.line = line
        self.basename = source_basename(file)
        self._stream = LogStream()
        self._finished = False
        self._format_time()
        self._stream.append(f"{threading.get_native_id():5d} ")
        self._stream.append(LEVEL_NAMES[self.level])
        parts: list = []
        if saved_errno:
            parts += [strerror(saved_errno), " (errno=", saved_errno, ") "]
        if func:
            parts += [func, " "]
        stream = self._stream
        for part in parts:
            stream = stream << part

    def _format_time(self) -> None:
        seconds, micros = divmod(self.time.micro_seconds_since_epoch(), MICROSECONDS_PER_SECOND)
        if getattr(_time_cache, "last_second", None) != seconds:
            tm = time.localtime(seconds)
            _time_cache.last_second = seconds
            _time_cache.text = "%4d%02d%02d %02d:%02d:%02d" % (
                tm.tm_year,
                tm.tm_mon,
                tm.tm_mday,
                tm.tm_hour,
                tm.tm_min,
                tm.tm_sec,
            )
        self._stream.append(_time_cache.text)
        self._stream.append(format_value(".%06d ", micros))

    def stream(self) -> LogStream:
        return self._stream

    def finish(self) -> None:
        """Close the record and hand it to the output; FATAL flushes and raises."""
        if self._finished:
            return
        self._finished = True
        stream = self._stream
        for part in (" - ", self.basename, ":", self.line, "\n"):
            stream = stream << part
        data = self._stream.buffer().data()
        _settings.output(data)
        if self.level == LogLevel.FATAL:
            _settings.flush()
            raise FatalLogError(data.decode("utf-8", errors="replace"))


def _should_log(level: LogLevel) -> bool:
    if level == LogLevel.FATAL:
        return True
    if level >= LogLevel.WARN:
        return _settings.enabled
    return _settings.enabled and get_log_level() <= level


def _emit(logger: Logger, args) -> None:
    stream = logger.stream()
    for arg in args:
        stream = stream << arg
    logger.finish()


def log(level: LogLevel, *args) -> None:
    """Write one record made of args at the given level, if it passes the filters."""
    level = LogLevel(level)
    if not _should_log(level):
        return
    frame = sys._getframe(1)
    func = frame.f_code.co_name if level <= LogLevel.DEBUG else None
    _emit(Logger(frame.f_code.co_filename, frame.f_lineno, level, func), args)


def log_syserr(saved_errno: int, *args) -> None:
    """Write an ERROR record that carries the text of an errno value."""
    if not _settings.enabled:
        return
    frame = sys._getframe(1)
    logger = Logger(frame.f_code.co_filename, frame.f_lineno, LogLevel.ERROR, saved_errno=saved_errno)
    _emit(logger, args)