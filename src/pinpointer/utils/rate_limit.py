"""Process-wide spacing of outbound calls."""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from ..core.config import settings
from ..core.logging import logger


class CallRateLimiter:
    """
    Enforces a minimum gap between consecutive calls, whoever issues them.

    Callers queue on a lock; the holder sleeps out whatever remains of the gap
    since the previous call, stamps the new call time, then releases. Only the
    timing of calls is serialized; the calls themselves run concurrently.
    """

    def __init__(
        self,
        min_gap: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_gap = min_gap
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def wait(self) -> float:
        """Block until a call may be issued. Returns the time slept."""
        async with self._get_lock():
            slept = 0.0
            if self._last_call is not None:
                remaining = self.min_gap - (self._clock() - self._last_call)
                if remaining > 0:
                    logger.debug(f"Rate limiter: waiting {remaining:.2f}s")
                    await self._sleep(remaining)
                    slept = remaining
            self._last_call = self._clock()
            return slept


_ai_rate_limiter: Optional[CallRateLimiter] = None


def get_ai_rate_limiter() -> CallRateLimiter:
    """Get or create the shared limiter for generative-AI calls."""
    global _ai_rate_limiter
    if _ai_rate_limiter is None:
        _ai_rate_limiter = CallRateLimiter(settings.AI_MIN_CALL_GAP)
    return _ai_rate_limiter
