# src/market_aggregator/services/rate_limiter.py
"""
Provider Rate Limiter
Sliding-window request counters per provider, in memory, per context.

Default budgets mirror the free tiers:
- marketaux     100 / day
- finnhub        60 / minute
- stocknewsapi  100 / day
- alphavantage   25 / day
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from src.market_aggregator.errors import RateLimitExceededError
from src.utils.logger.custom_logging import LoggerMixin


DAY = 24 * 60 * 60
MINUTE = 60


@dataclass(frozen=True)
class RateLimit:
    limit: int   # requests per window
    window: int  # seconds


DEFAULT_PROVIDER_LIMITS: Dict[str, RateLimit] = {
    "marketaux": RateLimit(100, DAY),
    "finnhub": RateLimit(60, MINUTE),
    "stocknewsapi": RateLimit(100, DAY),
    "alphavantage": RateLimit(25, DAY),
}


class ProviderRateLimiter(LoggerMixin):
    """In-memory sliding window limiter keyed by provider name"""

    def __init__(
        self,
        limits: Optional[Dict[str, RateLimit]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limits = dict(DEFAULT_PROVIDER_LIMITS if limits is None else limits)
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._lock = asyncio.Lock()

    async def is_allowed(self, key: str) -> Tuple[bool, int]:
        """
        Record one request for ``key`` if the budget allows it.

        Returns:
            (allowed, remaining)
        """
        limit = self.limits.get(key)
        if limit is None:
            return True, -1

        now = self._clock()
        window_start = now - limit.window

        async with self._lock:
            timestamps = [ts for ts in self._requests.get(key, []) if ts > window_start]
            self._requests[key] = timestamps

            if len(timestamps) >= limit.limit:
                return False, 0

            timestamps.append(now)
            return True, limit.limit - len(timestamps)

    async def acquire(self, key: str) -> None:
        """Like is_allowed, but raises RateLimitExceededError when exhausted."""
        allowed, remaining = await self.is_allowed(key)
        if not allowed:
            limit = self.limits[key]
            self.logger.warning(f"[RateLimit] {key} exhausted ({limit.limit}/{limit.window}s)")
            raise RateLimitExceededError(key, limit.limit, limit.window)
        if 0 <= remaining <= 5:
            self.logger.info(f"[RateLimit] {key}: {remaining} requests left in window")

    def usage(self) -> Dict[str, int]:
        now = self._clock()
        usage = {}
        for key, timestamps in self._requests.items():
            window = self.limits[key].window if key in self.limits else 0
            usage[key] = sum(1 for ts in timestamps if ts > now - window)
        return usage

    def reset(self) -> None:
        self._requests.clear()
