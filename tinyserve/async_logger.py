"""Logging back end that collects records in memory and writes them from a thread."""

from __future__ import annotations

import sys
import threading

from tinyserve.log_file import LogFile
from tinyserve.log_stream import LARGE_BUFFER, FixedBuffer
from tinyserve.timestamp import Timestamp

# Most filled buffers allowed to wait for the writer before the excess is dropped.
MAX_BUFFERS = 25
# Buffers kept when the backlog is over the limit; the rest are dropped.
BUFFERS_KEPT_WHEN_OVERSTOCKED = 2


class AsyncLogger:
    """Double-buffered logger: append() fills memory buffers, a worker thread
    writes them to a rolling LogFile every ``flush_interval`` seconds or when one fills."""

    def __init__(
        self,
        basename: str,
        dir: str,
        roll_size: int,
        flush_interval: float = 2,
        *,
        buffer_size: int = LARGE_BUFFER,
    ) -> None:
        if not basename:
            raise ValueError("log basename must not be empty")
        self._basename = basename
        self._dir = dir
        self._roll_size = roll_size
        self._flush_interval = flush_interval
        self._buffer_size = buffer_size
        self._running = False
        self._started = threading.Event()
        self._cond = threading.Condition()
        self._current = FixedBuffer(buffer_size)
        self._next: FixedBuffer | None = FixedBuffer(buffer_size)
        self._buffers: list[FixedBuffer] = []
        self._thread = threading.Thread(target=self._thread_func, name="Logging", daemon=True)

    def append(self, data) -> None:
        """Queue a record; it is dropped if it does not fit in an empty buffer."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._cond:
            if self._current.avail() > len(data):
                self._current.append(data)
                return
            self._buffers.append(self._current)
            if self._next is not None:
                self._current, self._next = self._next, None
            else:
                self._current = FixedBuffer(self._buffer_size)
            self._current.append(data)
            self._cond.notify()

    def start(self) -> None:
        """Start the writer thread and wait until it runs."""
        self._running = True
        self._thread.start()
        self._started.wait()

    def stop(self) -> None:
        """Write everything appended so far and stop the writer thread."""
        if not self._thread.is_alive() and not self._running:
            return
        with self._cond:
            self._running = False
            self._cond.notify_all()
        self._thread.join()

    def __enter__(self) -> AsyncLogger:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _thread_func(self) -> None:
        self._started.set()
        output = LogFile(self._basename, self._dir, self._roll_size, thread_safe=False)
        spare_1: FixedBuffer | None = FixedBuffer(self._buffer_size)
        spare_2: FixedBuffer | None = FixedBuffer(self._buffer_size)
        try:
            while True:
                with self._cond:
                    self._cond.wait_for(
                        lambda: bool(self._buffers) or not self._running,
                        timeout=self._flush_interval,
                    )
                    keep_going = self._running
                    self._buffers.append(self._current)
                    self._current, spare_1 = spare_1, None
                    to_write, self._buffers = self._buffers, []
                    if self._next is None:
                        self._next, spare_2 = spare_2, None

                if len(to_write) > MAX_BUFFERS:
                    message = "Dropped log messages at %s, %d larger buffers\n" % (
                        Timestamp.now().to_formatted_string(),
                        len(to_write) - 2,
                    )
                    sys.stderr.write(message)
                    output.append(message.encode("utf-8"))
                    del to_write[BUFFERS_KEPT_WHEN_OVERSTOCKED:]

                for buffer in to_write:
                    output.append(buffer.data())

                del to_write[2:]
                if spare_1 is None:
                    spare_1 = to_write.pop()
                    spare_1.reset()
                if spare_2 is None:
                    spare_2 = to_write.pop()
                    spare_2.reset()
                output.flush()
                if not keep_going:
                    break
            output.flush()
        finally:
            output.close()