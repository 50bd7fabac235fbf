"""
Utilities module - Logging, retries and timing.
"""

from bug_replay.utils.logging import setup_logging, get_logger
from bug_replay.utils.retry import RetryConfig, retry_async, with_timeout
from bug_replay.utils.timing import CancellationToken, Clock, SystemClock

__all__ = [
    "setup_logging",
    "get_logger",
    "RetryConfig",
    "retry_async",
    "with_timeout",
    "CancellationToken",
    "Clock",
    "SystemClock",
]
