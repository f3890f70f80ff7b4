"""
Fixed-window rate limiting keyed by (operation, identity)
"""
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from app.errors import RateLimitExceeded
from app.logging_config import logger


class RateLimiter(ABC):
    """Counter service deciding whether one more event is allowed"""

    @abstractmethod
    async def check(self, operation: str, identity: str, limit: int) -> int:
        """
        Record one event for (operation, identity).

        Returns:
            Events still allowed in the current window

        Raises:
            RateLimitExceeded: If the window already holds `limit` events
        """


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local fixed-window counter.

    Each instance of the service counts on its own, so under several
    workers the effective limit is multiplied by the worker count. Good
    enough for abuse mitigation; not a billing guarantee.

    At most `max_keys` counters are held. When full, counters from earlier
    windows are dropped first, then the oldest counters of the current one.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_keys: int = 10000,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock or time.monotonic
        self._lock = asyncio.Lock()
        # (operation, identity) -> (window_start, count)
        self._windows: Dict[Tuple[str, str], Tuple[float, int]] = {}

    def _window_start(self, now: float) -> float:
        return now - (now % self.window_seconds)

    def _evict_stale_unlocked(self, current_window: float) -> None:
        stale = [key for key, (start, _) in self._windows.items() if start < current_window]
        for key in stale:
            del self._windows[key]

    async def check(self, operation: str, identity: str, limit: int) -> int:
        now = self._clock()
        window = self._window_start(now)
        key = (operation, identity)

        async with self._lock:
            if key not in self._windows and len(self._windows) >= self.max_keys:
                self._evict_stale_unlocked(window)
                # Still full inside one window: forget the oldest counters
                while len(self._windows) >= self.max_keys:
                    del self._windows[next(iter(self._windows))]

            start, count = self._windows.get(key, (window, 0))
            if start != window:
                start, count = window, 0

            if count >= limit:
                logger.warning(
                    f"Rate limit hit for {operation}",
                    extra={"operation": operation, "identity": identity, "limit": limit}
                )
                raise RateLimitExceeded()

            count += 1
            self._windows[key] = (start, count)
            return limit - count

    def reset(self) -> None:
        """Forget all counters"""
        self._windows.clear()


# Global limiter instance shared by routes
rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    """Dependency returning the process-wide rate limiter"""
    return rate_limiter
