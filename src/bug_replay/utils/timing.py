"""
Timing primitives for replay: an injectable clock and cancellation.

Every wait in the replay engine goes through a Clock so that tests can
substitute a virtual one and run without real delays.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

from bug_replay.exceptions.replay import ReplayCancelled


class Clock(ABC):
    """Source of time and of sleeps, in milliseconds."""
    
    @abstractmethod
    def monotonic_ms(self) -> float:
        ...
    
    @abstractmethod
    async def sleep(self, ms: float) -> None:
        ...


class SystemClock(Clock):
    """Real time, backed by asyncio.sleep."""
    
    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000
    
    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(max(ms, 0) / 1000)


class CancellationToken:
    """
    Cooperative cancellation flag checked at every suspension point.
    
    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(orchestrator.replay(report, cancel_token=token))
        >>> token.cancel("user pressed stop")
    """
    
    def __init__(self):
        self._reason: Optional[str] = None
    
    @property
    def cancelled(self) -> bool:
        return self._reason is not None
    
    @property
    def reason(self) -> Optional[str]:
        return self._reason
    
    def cancel(self, reason: str = "Replay cancelled") -> None:
        if self._reason is None:
            self._reason = reason
    
    def raise_if_cancelled(self) -> None:
        """
        Raises:
            ReplayCancelled: If cancel() has been called
        """
        if self._reason is not None:
            raise ReplayCancelled(self._reason)
