"""Log files that roll over by size and by day, and the append-only file beneath them."""

from __future__ import annotations

import contextlib
import errno
import os
import sys
import threading
import time
from typing import Callable

from tinyserve.logger import Logger, LogLevel, log

ROLL_INTERVAL_SECONDS = 60 * 60 * 24
FILE_BUFFER_SIZE = 64 * 1024


def log_file_name(basename: str, now: float) -> str:
    """Name of a log file: basename, local start time, process id and ``.log``."""
    stamp = time.strftime(".%Y%m%d-%H%M%S", time.localtime(now))
    return f"{basename}{stamp}.{os.getpid()}.log"


def _fatal(saved_errno: int, *parts) -> None:
    caller = sys._getframe(1)
    record = Logger(__file__, caller.f_lineno, LogLevel.FATAL, saved_errno=saved_errno)
    stream = record.stream()
    for part in parts:
        stream = stream << part
    record.finish()


class AppendFile:
    """A file opened for appending that counts the bytes written to it."""

    def __init__(self, filename: str) -> None:
        self._file = open(filename, "ab", buffering=FILE_BUFFER_SIZE)
        self._written = 0

    def append(self, data: bytes) -> None:
        try:
            self._file.write(data)
        except OSError:
            print("AppendFile.append() failed", file=sys.stderr)
            return
        self._written += len(data)

    def flush(self) -> None:
        self._file.flush()

    def written_bytes(self) -> int:
        return self._written

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> AppendFile:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class LogFile:
    """Writes log data to files in a directory, starting a new file when one grows
    past ``roll_size`` or a new day begins."""

    def __init__(
        self,
        basename: str,
        dir: str,
        roll_size: int,
        thread_safe: bool = True,
        flush_interval: int = 3,
        check_every_n: int = 1024,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if "/" in basename:
            raise ValueError(f"log basename must not contain '/': {basename!r}")
        self._basename = basename
        self._dir = dir
        self._roll_size = roll_size
        self._flush_interval = flush_interval
        self._check_every_n = check_every_n
        self._clock = clock
        self._count = 0
        self._lock = threading.Lock() if thread_safe else contextlib.nullcontext()
        self._file: AppendFile | None = None
        self._start_of_period = 0
        self._last_roll = 0
        self._last_flush = 0
        self.ensure_dir_exists(dir)
        self.roll_file()

    @staticmethod
    def ensure_dir_exists(path: str) -> None:
        """Create every missing directory along path; a non-directory in the way is fatal."""
        if os.path.isdir(path):
            return
        if len(path) > 1 and path.endswith("/"):
            path = path[:-1]
        current = ""
        for segment in path.split("/"):
            current += segment + "/"
            if not os.path.exists(current):
                log(LogLevel.TRACE, "LogFile::ensure_dir_exists mkdir: ", current)
                try:
                    os.mkdir(current, 0o755)
                except OSError as exc:
                    _fatal(exc.errno or 0, "LogFile::ensure_dir_exists mkdir failed", current)
            elif not os.path.isdir(current):
                _fatal(errno.ENOTDIR, "Path exists but is not a directory: ", current)

    def append(self, data: bytes) -> None:
        with self._lock:
            self._append_unlocked(data)

    def flush(self) -> None:
        with self._lock:
            self._file.flush()

    def _append_unlocked(self, data: bytes) -> None:
        self._file.append(data)
        if self._file.written_bytes() > self._roll_size:
            self.roll_file()
            return
        self._count += 1
        if self._count >= self._check_every_n:
            self._count = 0
            now = int(self._clock())
            this_period = now // ROLL_INTERVAL_SECONDS * ROLL_INTERVAL_SECONDS
            if this_period > self._start_of_period:
                self.roll_file()
            elif now - self._last_flush > self._flush_interval:
                self._last_flush = now
                self._file.flush()

    def roll_file(self) -> bool:
        """Start a new file unless one was already started this second."""
        now = int(self._clock())
        filename = os.path.join(self._dir, log_file_name(self._basename, now))
        start = now // ROLL_INTERVAL_SECONDS * ROLL_INTERVAL_SECONDS
        if now > self._last_roll:
            self._last_roll = now
            self._last_flush = now
            self._start_of_period = start
            new_file = AppendFile(filename)
            if self._file is not None:
                self._file.close()
            self._file = new_file
            return True
        return False

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()

    def __enter__(self) -> LogFile:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()