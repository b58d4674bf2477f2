# src/market_aggregator/context.py
"""
Aggregator Context
Owns the process-wide shared state: settings, TTL cache, provider rate
limiters and the pooled HTTP client. Created once at process start, reset
with clear(), released with aclose().
"""

from typing import Optional

import httpx

from src.core.logging import setup_logging
from src.market_aggregator.services.cache_service import TTLCache
from src.market_aggregator.services.rate_limiter import ProviderRateLimiter
from src.utils.config import Settings, get_settings
from src.utils.logger.custom_logging import LoggerMixin


class AggregatorContext(LoggerMixin):
    """
    Explicit shared state passed to adapters and the aggregator.

    Args:
        settings: configuration; defaults to the cached process settings
        cache: shared TTL cache; built from settings when omitted
        rate_limiter: provider request counters
        transport: optional httpx transport (e.g. httpx.MockTransport in tests)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCache] = None,
        rate_limiter: Optional[ProviderRateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        if cache is None:
            cache = TTLCache(
                ttl_seconds=self.settings.CACHE_TTL_SECONDS,
                max_entries=self.settings.CACHE_MAX_ENTRIES,
            )
        self.cache = cache
        self.rate_limiter = rate_limiter if rate_limiter is not None else ProviderRateLimiter()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def create(cls, settings: Optional[Settings] = None, **kwargs) -> "AggregatorContext":
        """Process-start hook: configure logging, then build the context."""
        setup_logging()
        context = cls(settings=settings, **kwargs)
        context.logger.info(
            f"[Context] Initialized: cache ttl={context.cache.ttl_seconds}s, "
            f"capacity={context.cache.max_entries}, timeout={context.settings.REQUEST_TIMEOUT}s"
        )
        return context

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the shared async HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.REQUEST_TIMEOUT,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def clear(self) -> None:
        """Drop cached results and rate-limit counters."""
        self.cache.clear()
        self.rate_limiter.reset()

    async def aclose(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "AggregatorContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
