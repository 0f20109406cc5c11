"""One-shot and repeating timers kept in expiration order."""

from __future__ import annotations

from bisect import bisect_left, insort
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Optional

from tinyserve.logger import LogLevel, log
from tinyserve.timestamp import Timestamp

TimerCallback = Callable[[], None]


@dataclass(eq=False)
class Timer:
    """A callback due at ``expiration``, repeated every ``interval`` microseconds if non-zero."""

    callback: TimerCallback
    expiration: Timestamp
    interval: int = 0

    def run(self) -> None:
        self.callback()

    def restart(self, now: Timestamp) -> None:
        """Schedule the next run one interval after now, or mark a one-shot timer spent."""
        if self.repeatable():
            self.expiration = now + self.interval
        else:
            self.expiration = Timestamp.invalid()

    def repeatable(self) -> bool:
        return self.interval != 0


@dataclass
class TimerQueue:
    """Timers ordered by expiration; ``handle_expired`` runs the ones that are due.

    Not thread-safe: all calls belong to the thread that drives the queue.
    """

    _entries: list = field(default_factory=list, init=False, repr=False)
    _keys: dict = field(default_factory=dict, init=False, repr=False)
    _sequence: count = field(default_factory=count, init=False, repr=False)
    _calling_expired: bool = field(default=False, init=False, repr=False)
    _canceling: set = field(default_factory=set, init=False, repr=False)

    def add_timer(self, callback: TimerCallback, when: Timestamp, interval: int = 0) -> Timer:
        """Schedule callback at ``when``; a non-zero interval (microseconds) repeats it."""
        timer = Timer(callback, when, interval)
        self._insert(timer)
        return timer

    def _insert(self, timer: Timer) -> bool:
        """Insert timer; return whether it became the earliest one."""
        key = (timer.expiration.micro_seconds_since_epoch(), next(self._sequence))
        earliest = not self._entries or key < self._entries[0][:2]
        insort(self._entries, (*key, timer))
        self._keys[timer] = key
        return earliest

    def remove_timer(self, timer: Timer) -> None:
        """Cancel a timer; a timer may cancel itself from its own callback."""
        key = self._keys.pop(timer, None)
        if key is not None:
            log(LogLevel.TRACE, "TimerQueue.remove_timer remove timer: ", hex(id(timer)))
            del self._entries[bisect_left(self._entries, key)]
        elif self._calling_expired:
            self._canceling.add(timer)

    def handle_expired(self, now: Optional[Timestamp] = None) -> list[Timer]:
        """Run every timer due at or before now and re-arm the repeating ones.

        Returns the timers that ran, in expiration order.
        """
        if now is None:
            now = Timestamp.now()
        limit = bisect_left(self._entries, (now.micro_seconds_since_epoch() + 1,))
        expired = [entry[2] for entry in self._entries[:limit]]
        del self._entries[:limit]
        for timer in expired:
            del self._keys[timer]

        log(LogLevel.TRACE, "TimerQueue.handle_expired cnt:", len(expired))
        self._calling_expired = True
        self._canceling.clear()
        try:
            for timer in expired:
                timer.run()
        finally:
            self._calling_expired = False

        for timer in expired:
            if timer.repeatable() and timer not in self._canceling:
                timer.restart(now)
                self._insert(timer)
        self._canceling.clear()
        return expired

    def next_expiration(self) -> Optional[Timestamp]:
        """When the earliest timer is due, or None if there are no timers."""
        if not self._entries:
            return None
        return self._entries[0][2].expiration

    def __len__(self) -> int:
        return len(self._entries)