"""Stream logging, rolling log files, asynchronous logging, timers and a timing wheel."""

__version__ = "0.1.0"

__all__ = [
    "async_logger",
    "log_file",
    "log_stream",
    "logger",
    "timer",
    "timestamp",
    "timing_wheel",
]