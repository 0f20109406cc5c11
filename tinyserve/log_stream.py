"""Fixed-size byte buffers and the stream that formats log values into them."""

from __future__ import annotations

LARGE_BUFFER = 4000 * 1000
SMALL_BUFFER = 4000
# Free space a number needs before it is written; less than this drops it.
MAX_NUMERIC_SIZE = 48
_FMT_BUFFER_SIZE = 80


class FixedBuffer:
    """A byte buffer of fixed capacity that silently drops what does not fit."""

    def __init__(self, size: int = SMALL_BUFFER) -> None:
        self._data = bytearray(size)
        self._cur = 0

    def append(self, data: bytes) -> None:
        """Copy data in if strictly more room than its length remains."""
        if self.avail() > len(data):
            self._put(data)

    def _put(self, data: bytes) -> None:
        end = self._cur + len(data)
        self._data[self._cur:end] = data
        self._cur = end

    def data(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._data[: self._cur])

    def avail(self) -> int:
        return len(self._data) - self._cur

    def reset(self) -> None:
        """Rewind the write position to the start."""
        self._cur = 0

    def bzero(self) -> None:
        """Zero the whole storage without moving the write position."""
        self._data[:] = bytes(len(self._data))

    def __len__(self) -> int:
        return self._cur


class LogStream:
    """Collects formatted values of one log line with ``<<``."""

    def __init__(self) -> None:
        self._buffer = FixedBuffer(SMALL_BUFFER)

    def __lshift__(self, value) -> LogStream:
        if value is None:
            self._buffer.append(b"(null)")
        elif isinstance(value, bool):
            self._buffer.append(b"1" if value else b"0")
        elif isinstance(value, int):
            self._format_numeric(str(value))
        elif isinstance(value, float):
            self._format_numeric(("%.12g" % value)[: MAX_NUMERIC_SIZE - 1])
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self._buffer.append(bytes(value))
        else:
            self._buffer.append(str(value).encode("utf-8"))
        return self

    def _format_numeric(self, text: str) -> None:
        if self._buffer.avail() >= MAX_NUMERIC_SIZE:
            self._buffer._put(text.encode("ascii"))

    def append(self, data) -> None:
        """Append raw bytes (or text, encoded as UTF-8)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buffer.append(bytes(data))

    def buffer(self) -> FixedBuffer:
        return self._buffer

    def reset_buffer(self) -> None:
        self._buffer.reset()


def format_value(fmt: str, value) -> str:
    """Format one number with a printf-style pattern; the result must stay under 80 bytes."""
    if not isinstance(value, (int, float)):
        raise TypeError(f"format_value needs a number, got {type(value).__name__}")
    text = fmt % value
    if len(text.encode("utf-8")) >= _FMT_BUFFER_SIZE:
        raise ValueError(f"formatted value longer than {_FMT_BUFFER_SIZE - 1} bytes")
    return text