"""A timing wheel that expires idle entries after a fixed number of ticks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from tinyserve.logger import LogLevel, log
from tinyserve.timer import Timer, TimerQueue
from tinyserve.timestamp import Timestamp

WheelCallback = Callable[[Any], None]


@dataclass(eq=False)
class Entry:
    """One item on the wheel; ``bucket`` is None once it has expired or been removed."""

    wheel: TimingWheel
    data: Any
    bucket: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.bucket is not None


class TimingWheel:
    """A ring of ``idle_seconds`` buckets advanced once per tick by ``on_timer``.

    An entry expires on the ``idle_seconds``-th tick after it was inserted or last
    updated; its data is then passed to the callback. Given a TimerQueue, the wheel
    registers a one-second repeating timer that drives it.
    """

    def __init__(
        self,
        idle_seconds: int,
        callback: Optional[WheelCallback] = None,
        *,
        timers: Optional[TimerQueue] = None,
    ) -> None:
        if idle_seconds < 1:
            raise ValueError(f"idle_seconds must be at least 1, got {idle_seconds}")
        self.idle_seconds = idle_seconds
        self.callback = callback
        self._begin = 0
        self._end = idle_seconds - 1
        self._buckets: list[dict[Entry, None]] = [{} for _ in range(idle_seconds)]
        self.base_timer: Optional[Timer] = None
        if timers is not None:
            second = Timestamp.seconds_to_duration(1)
            self.base_timer = timers.add_timer(self.on_timer, Timestamp.now() + second, second)

    def insert(self, data: Any) -> Entry:
        """Put data on the wheel in the newest bucket."""
        entry = Entry(self, data)
        self._place(entry)
        return entry

    def _place(self, entry: Entry) -> None:
        self._buckets[self._end][entry] = None
        entry.bucket = self._end

    def update(self, entry: Entry) -> None:
        """Move a live entry to the newest bucket, restarting its idle time."""
        if entry.bucket is not None and entry.bucket != self._end:
            del self._buckets[entry.bucket][entry]
            self._place(entry)

    def remove(self, entry: Entry) -> None:
        """Take a live entry off the wheel without calling the callback."""
        if entry.bucket is not None:
            del self._buckets[entry.bucket][entry]
            entry.bucket = None

    def on_timer(self) -> None:
        """Advance one tick, expiring every entry in the oldest bucket."""
        expired = self._buckets[self._begin]
        log(LogLevel.TRACE, "TimingWheel.on_timer: bucket[", self._begin, "]: ", len(expired))
        self._buckets[self._begin] = {}
        for entry in expired:
            entry.bucket = None
        self._begin = (self._begin + 1) % self.idle_seconds
        self._end = (self._end + 1) % self.idle_seconds
        if self.callback is not None:
            for entry in expired:
                self.callback(entry.data)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets)