"""Microsecond-resolution wall-clock timestamps."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

MICROSECONDS_PER_SECOND = 1_000_000
# Shortest delay reported by Timestamp.duration_from_now, in microseconds.
MIN_DURATION_FROM_NOW = 100


def _llround(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    rounded = math.floor(abs(value) + 0.5)
    return -rounded if value < 0 else rounded


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time, stored as whole microseconds since the Unix epoch.

    Durations are plain integers counting microseconds.
    """

    microseconds: int = 0

    @staticmethod
    def now() -> Timestamp:
        """The current wall-clock time."""
        return Timestamp(time.time_ns() // 1000)

    @staticmethod
    def invalid() -> Timestamp:
        """The epoch, used as the 'no time' marker."""
        return Timestamp()

    @staticmethod
    def seconds_to_duration(seconds: float) -> int:
        """Convert seconds to a duration in microseconds."""
        return _llround(seconds * MICROSECONDS_PER_SECOND)

    @property
    def valid(self) -> bool:
        return self.microseconds > 0

    def micro_seconds_since_epoch(self) -> int:
        return self.microseconds

    def duration_from_now(self) -> int:
        """Microseconds from now until this timestamp, never below 100."""
        remaining = self - Timestamp.now()
        return max(remaining, MIN_DURATION_FROM_NOW)

    def to_formatted_string(self, show_microseconds: bool = True, use_utc: bool = False) -> str:
        """Render as ``YYYYMMDD HH:MM:SS`` with an optional ``.uuuuuu`` suffix."""
        seconds, micros = divmod(self.microseconds, MICROSECONDS_PER_SECOND)
        tm = time.gmtime(seconds) if use_utc else time.localtime(seconds)
        text = "%4d%02d%02d %02d:%02d:%02d" % (
            tm.tm_year,
            tm.tm_mon,
            tm.tm_mday,
            tm.tm_hour,
            tm.tm_min,
            tm.tm_sec,
        )
        if show_microseconds:
            text += ".%06d" % micros
        return text

    def __add__(self, duration: int) -> Timestamp:
        if isinstance(duration, bool) or not isinstance(duration, int):
            return NotImplemented
        return Timestamp(self.microseconds + duration)

    def __sub__(self, other):
        """Timestamp minus Timestamp gives a duration; minus a duration gives a Timestamp."""
        if isinstance(other, Timestamp):
            return self.microseconds - other.microseconds
        if isinstance(other, int) and not isinstance(other, bool):
            return Timestamp(self.microseconds - other)
        return NotImplemented