# tinyserve

Logging and timer building blocks for event-driven programs.

- `tinyserve.timestamp` provides `Timestamp`, a time point stored as whole
  microseconds since the epoch. Durations are plain integers of microseconds.
  `Timestamp.seconds_to_duration()` converts seconds to a duration.
  `to_formatted_string()` renders a timestamp as `YYYYMMDD HH:MM:SS.uuuuuu`.
- `tinyserve.log_stream` provides `FixedBuffer` and `LogStream`.
  - A `FixedBuffer` is a fixed-capacity byte buffer. It silently drops data that does not fit.
  - A `LogStream` collects the values of one log line with `<<`.
  - `format_value()` formats a single number with a printf-style pattern.
- `tinyserve.logger` provides `Logger`, `LogLevel`, and the `log()` and `log_syserr()` helpers.
  - Each record carries the local time with microseconds, the thread id, the level and the source file and line.
  - The records are filtered by `set_log_level()` and `enable_logger()`.
  - Records are handed to the callback set with `set_output()`. The default callback writes to standard output.
  - A `FATAL` record is written, then the callback set with `set_flush()` is called, and then `FatalLogError` is raised.
- `tinyserve.log_file` provides `LogFile` and `AppendFile`.
  - `LogFile` appends to files named `<basename>.<YYYYMMDD-HHMMSS>.<pid>.log`.
  - It starts a new file when the current one grows past `roll_size` bytes, or when a new day begins.
  - It flushes periodically.
  - Missing directories are created.
- `tinyserve.async_logger` provides `AsyncLogger`, a double-buffered back end.
  - `append()` fills in-memory buffers.
  - A background thread writes the buffers to a `LogFile` every `flush_interval` seconds, or sooner when a buffer fills.
  - If more than 25 filled buffers are waiting, all but two are dropped and a warning is written.
- `tinyserve.timer` provides `Timer` and `TimerQueue`, for one-shot and repeating timers.
  - Timers are kept in expiration order.
  - A timer's callback may cancel its own timer with `remove_timer()`.
- `tinyserve.timing_wheel` provides `TimingWheel` and `Entry`, a ring of buckets for idle timeouts.

## Install

```
pip install .
```

## Logging

```python
from tinyserve import logger
from tinyserve.logger import LogLevel

logger.set_log_level(LogLevel.DEBUG)
logger.log(LogLevel.INFO, "listening on port ", 8080)
logger.log_syserr(2, "open failed")   # ERROR record with the text of errno 2
```

To send log lines to rolling files through a background thread:

```python
from tinyserve import logger
from tinyserve.async_logger import AsyncLogger

with AsyncLogger("server", "log", 400 * 1000, 2) as backend:
    logger.set_output(backend.append)
    logger.log(logger.LogLevel.INFO, "hello")
logger.reset_output()
```

`LogFile` can also be used directly, and `logger.set_output(log_file.append)` points log records at it.

## Timers

```python
from tinyserve.timestamp import Timestamp
from tinyserve.timer import TimerQueue

queue = TimerQueue()
timer = queue.add_timer(lambda: print("tick"), Timestamp.now(), Timestamp.seconds_to_duration(2))
queue.handle_expired(Timestamp.now())   # runs due timers and re-arms repeating ones
queue.next_expiration()                 # when the next timer is due, or None
queue.remove_timer(timer)
```

## Timing wheel

```python
from tinyserve.timing_wheel import TimingWheel

wheel = TimingWheel(10, lambda data: print("idle:", data))
entry = wheel.insert("connection 1")
wheel.update(entry)   # restart its idle time
wheel.on_timer()      # advance one tick
```

An entry expires on the `idle_seconds`-th tick after it was inserted or last
updated. When it expires, its data is passed to the callback. `remove()` takes an
entry off the wheel without calling the callback.

You can drive the wheel yourself by calling `on_timer()` once per second.
Alternatively, pass `timers=` a `TimerQueue`, and the wheel registers a repeating
one-second timer on that queue.

## What this package does not do

There is no event loop, no socket handling and no TCP or HTTP server here.
Nothing runs timers by itself. A `TimerQueue` only runs timers when
`handle_expired()` is called, so the caller has to drive it from their own loop.
The package installs no command-line program.

## Tests

```
pip install .[test]
pytest
```