"""
Shared fixtures for market aggregator tests
"""

import os
import sys
from datetime import datetime, timezone

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from src.market_aggregator.context import AggregatorContext
from src.utils.config import Settings


# Wednesday 2024-03-06 10:00 America/New_York, regular session
MARKET_OPEN_NOW = datetime(2024, 3, 6, 15, 0, tzinfo=timezone.utc)

# Saturday 2024-03-09 12:00 America/New_York
WEEKEND_NOW = datetime(2024, 3, 9, 17, 0, tzinfo=timezone.utc)


_BASE_SETTINGS = {
    "MARKETAUX_API_KEY": "",
    "FINNHUB_API_KEY": "",
    "STOCKNEWS_API_KEY": "",
    "ALPHAVANTAGE_API_KEY": "",
    "FMP_API_KEY": "",
    "REQUEST_TIMEOUT": 2.0,
    "CACHE_TTL_SECONDS": 300,
    "CACHE_MAX_ENTRIES": 50,
    "CACHE_SYNTHETIC_RESULTS": False,
    "NEWS_DEFAULT_SOURCES": "marketaux,finnhub,stocknewsapi",
    "GAINERS_DEFAULT_SOURCES": "yahoo,marketwatch,fmp,cnbc,alphavantage,stockanalysis",
    "SENTIMENT_CONTEXT_WEIGHT": 0.2,
    "LOG_DIR": "",
}


# ============================================================================
# SETTINGS / CONTEXT
# ============================================================================

@pytest.fixture
def settings_factory():
    """Build Settings with every credential empty unless overridden"""
    def _make(**overrides) -> Settings:
        values = dict(_BASE_SETTINGS)
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def settings(settings_factory):
    return settings_factory()


@pytest.fixture
def context_factory(settings_factory):
    """
    Build an AggregatorContext whose HTTP client is served by ``handler``.

    Usage:
        context = context_factory(handler, FINNHUB_API_KEY="real_key")
    """
    def _make(handler=None, **overrides) -> AggregatorContext:
        transport = httpx.MockTransport(handler) if handler is not None else None
        return AggregatorContext(settings=settings_factory(**overrides), transport=transport)
    return _make


@pytest.fixture
def context(context_factory):
    return context_factory()


# ============================================================================
# CLOCKS
# ============================================================================

@pytest.fixture
def market_open_now():
    return MARKET_OPEN_NOW


@pytest.fixture
def weekend_now():
    return WEEKEND_NOW


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
