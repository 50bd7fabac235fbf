"""
Retry and timeout helpers for the async collaborators.

Delays are in milliseconds and the sleep is injectable, so callers that own
a clock (the replay orchestrator) keep every wait on that clock.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepMs = Callable[[float], Awaitable[Any]]


@dataclass
class RetryConfig:
    """
    How often and how patiently to retry.
    
    Attributes:
        max_attempts: Total attempts; anything below 1 still runs once
        initial_delay_ms: Wait after the first failed attempt
        max_delay_ms: Ceiling for the growing wait
        backoff_multiplier: Growth factor applied after every wait
        retry_on: Exception types worth another attempt; others propagate
        on_retry: Called with (failed attempt number, error) before each wait
    """
    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 30000
    backoff_multiplier: float = 2.0
    retry_on: Tuple[Type[Exception], ...] = (Exception,)
    on_retry: Optional[Callable[[int, Exception], None]] = None
    
    @property
    def attempts(self) -> int:
        return max(1, self.max_attempts)
    
    def delays(self) -> Iterator[float]:
        """The wait before each retry, one fewer than the attempts."""
        delay = float(self.initial_delay_ms)
        for _ in range(self.attempts - 1):
            yield delay
            delay = min(delay * self.backoff_multiplier, self.max_delay_ms)


async def _asyncio_sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    config: RetryConfig,
    *args: Any,
    sleep: Optional[SleepMs] = None,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or attempts run out.
    
    There is no wait after the final attempt; its error is raised as is.
    """
    sleep = sleep or _asyncio_sleep_ms
    attempt = 1
    for delay_ms in config.delays():
        try:
            return await func(*args, **kwargs)
        except config.retry_on as e:
            logger.warning(f"Attempt {attempt}/{config.attempts} failed: {e}. Retrying in {int(delay_ms)}ms")
            if config.on_retry:
                config.on_retry(attempt, e)
            await sleep(delay_ms)
        attempt += 1
    
    return await func(*args, **kwargs)


async def with_timeout(
    coro: Awaitable[T],
    timeout_seconds: Optional[float],
    error_message: str = "Operation timed out",
) -> T:
    """
    Await ``coro``, giving up after ``timeout_seconds``.
    
    A timeout of None or 0 waits as long as it takes.
    
    Raises:
        asyncio.TimeoutError: With ``error_message`` when time runs out
    """
    if not timeout_seconds:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise asyncio.TimeoutError(error_message) from None
