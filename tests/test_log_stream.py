import pytest

from tinyserve.log_stream import (
    MAX_NUMERIC_SIZE,
    SMALL_BUFFER,
    FixedBuffer,
    LogStream,
    format_value,
)


def test_fixed_buffer_append_and_reset():
    buf = FixedBuffer(16)
    assert len(buf) == 0
    assert buf.avail() == 16
    buf.append(b"hello")
    assert buf.data() == b"hello"
    assert len(buf) == 5
    assert buf.avail() == 11
    buf.reset()
    assert buf.data() == b""
    assert buf.avail() == 16


def test_fixed_buffer_drops_when_not_strictly_smaller():
    buf = FixedBuffer(4)
    buf.append(b"abcd")
    assert buf.data() == b""
    buf.append(b"abc")
    assert buf.data() == b"abc"
    buf.append(b"d")
    assert buf.data() == b"abc"


def test_fixed_buffer_bzero_keeps_position():
    buf = FixedBuffer(8)
    buf.append(b"xyz")
    buf.bzero()
    assert len(buf) == 3
    assert buf.data() == bytes(3)


def test_stream_chains_values():
    stream = LogStream()
    result = stream << "abc" << -7 << " " << 1.5
    assert result is stream
    assert stream.buffer().data() == b"abc-7 1.5"


def test_stream_large_integer_matches_decimal():
    stream = LogStream()
    stream = stream << 123456789012345678
    assert stream.buffer().data() == str(123456789012345678).encode()


def test_stream_none_and_bool():
    stream = LogStream()
    stream = stream << None << True << False
    assert stream.buffer().data() == b"(null)10"


def test_stream_float_uses_twelve_significant_digits():
    stream = LogStream()
    stream = stream << 0.1
    assert stream.buffer().data() == b"0.1"
    assert float((LogStream() << 2.0 / 3).buffer().data()) == pytest.approx(2.0 / 3, rel=1e-11)


def test_stream_bytes_and_append():
    stream = LogStream()
    stream.append(b"raw ")
    stream.append("text")
    stream = stream << b"!"
    assert stream.buffer().data() == b"raw text!"


def test_numbers_dropped_when_little_room():
    stream = LogStream()
    stream.append(b"x" * (SMALL_BUFFER - MAX_NUMERIC_SIZE + 1))
    before = stream.buffer().data()
    stream = stream << 5 << 2.5
    assert stream.buffer().data() == before
    stream = stream << "ok"
    assert stream.buffer().data() == before + b"ok"


def test_reset_buffer():
    stream = LogStream()
    stream = stream << "something"
    stream.reset_buffer()
    assert stream.buffer().data() == b""


def test_format_value_pads():
    assert format_value("%06d", 42) == "000042"
    assert len(format_value(".%06d ", 123)) == 8


def test_format_value_rejects_non_numbers():
    with pytest.raises(TypeError):
        format_value("%s", "text")


def test_format_value_rejects_long_output():
    with pytest.raises(ValueError):
        format_value("%0100d", 1)