"""
Unit tests for MarketAggregatorService

Adapters are stubbed at the _fetch seam so the full fetch path (prerequisite
check, rate limiter, adapter cache) still runs.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import List
from unittest.mock import AsyncMock

import pytest

from src.market_aggregator.errors import ParseError, RateLimitExceededError, TransportError, ValidationError
from src.market_aggregator.providers.base_provider import BaseNewsAdapter, BaseQuoteAdapter
from src.market_aggregator.schemas.query import FetchMode, GainersQuery, NewsQuery
from src.market_aggregator.schemas.records import NewsRecord, Provenance, QuoteRecord, SentimentLabel
from src.market_aggregator.schemas.results import DataStatus, SourceStatus
from src.market_aggregator.services.aggregator_service import MarketAggregatorService
from src.market_aggregator.services.market_clock import neutral_market_context
from src.market_aggregator.services.sentiment_scorer import SentimentScorer
from src.market_aggregator.services.synthetic_generator import SyntheticDataGenerator


NOW = datetime(2024, 3, 6, 15, 0, tzinfo=timezone.utc)


# ============================================================================
# STUB ADAPTERS
# ============================================================================

class StubNewsAdapter(BaseNewsAdapter):
    """News adapter returning canned records, an error, or nothing before a delay"""

    def __init__(self, context, name, records=None, error=None, delay=0.0, configured=True):
        super().__init__(context)
        self.name = name
        self.display_name = name.title()
        self._records = list(records or [])
        self._error = error
        self._delay = delay
        self._configured = configured
        self.queries: List[NewsQuery] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def _fetch(self, query):
        self.queries.append(query)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return list(self._records)


class StubQuoteAdapter(BaseQuoteAdapter):

    def __init__(self, context, name, records=None, error=None):
        super().__init__(context)
        self.name = name
        self.display_name = name.title()
        self._records = list(records or [])
        self._error = error
        self.calls = 0

    async def _fetch(self, query):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._records)


def make_article(adapter, title, hours_ago=1, source_name="Reuters", sentiment=None):
    return NewsRecord(
        title=title,
        source_name=source_name,
        published_at=NOW - timedelta(hours=hours_ago),
        url=f"https://example.com/{adapter}/{title.replace(' ', '-')}",
        sentiment=sentiment,
        adapter=adapter,
    )


def make_quote(adapter, symbol, percent_change, price=10.0):
    return QuoteRecord(
        symbol=symbol,
        display_name=f"{symbol} Corp.",
        price=price,
        percent_change=percent_change,
        volume=5_000_000,
        last_update=NOW,
        source_name=adapter,
    )


# ============================================================================
# TEST FIXTURES
# ============================================================================

@pytest.fixture
def service_factory(context_factory):
    """
    Build a service over stub adapters.

    Usage:
        service = service_factory(news=[...], quotes=[...], REQUEST_TIMEOUT=0.05)
    """
    def _make(news=None, quotes=None, context=None, **settings_overrides):
        context = context or context_factory(**settings_overrides)
        return MarketAggregatorService(
            context,
            news_adapters=[build(context) for build in (news or [])],
            quote_adapters=[build(context) for build in (quotes or [])],
            generator=SyntheticDataGenerator(rng=random.Random(1), clock=lambda: NOW),
            scorer=SentimentScorer(context_fn=neutral_market_context),
        )
    return _make


def stub_news(name, **kwargs):
    return lambda context: StubNewsAdapter(context, name, **kwargs)


def stub_quotes(name, **kwargs):
    return lambda context: StubQuoteAdapter(context, name, **kwargs)


# ============================================================================
# NEWS: PARALLEL MODE
# ============================================================================

class TestNewsAggregation:

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_live_records(self, service_factory):
        """One source answers with 3 articles, the other times out"""
        articles = [make_article("alpha", f"Apple story {i}", hours_ago=i, sentiment=0.5) for i in range(1, 4)]
        service = service_factory(
            news=[stub_news("alpha", records=articles), stub_news("beta", delay=1.0)],
            REQUEST_TIMEOUT=0.05,
        )

        result = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha", "beta"])

        assert len(result.records) == 3
        assert result.provenance == Provenance.LIVE
        assert result.data_status == DataStatus.PARTIAL

        alpha, beta = result.sources
        assert (alpha.source_name, alpha.status, alpha.record_count) == ("alpha", SourceStatus.SUCCESS, 3)
        assert (beta.source_name, beta.status, beta.error_type) == ("beta", SourceStatus.ERROR, "timeout")
        assert result.failed_sources == ["beta"]

        assert result.overall_sentiment.label == SentimentLabel.POSITIVE
        assert result.overall_sentiment.scored_count == 3

    @pytest.mark.asyncio
    async def test_limit_split_across_sources(self, service_factory):
        service = service_factory(news=[stub_news("alpha"), stub_news("beta"), stub_news("gamma")])

        await service.fetch_comprehensive(NewsQuery(symbol="AAPL", limit=10, preferred_sources=("alpha", "beta", "gamma")))

        assert [q.limit for q in service.news_adapters["alpha"].queries] == [4]
        assert [q.limit for q in service.news_adapters["gamma"].queries] == [4]

    @pytest.mark.asyncio
    async def test_cross_source_duplicates_removed(self, service_factory):
        shared_title = "Apple unveils new iPad lineup"
        service = service_factory(
            news=[
                stub_news("alpha", records=[make_article("alpha", shared_title, hours_ago=2)]),
                stub_news("beta", records=[make_article("beta", shared_title, hours_ago=1)]),
            ]
        )

        result = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha", "beta"])

        assert len(result.records) == 1
        # first in source order wins, even though beta's copy is newer
        assert result.records[0].adapter == "alpha"
        assert [s.record_count for s in result.sources] == [1, 1]
        assert result.data_status == DataStatus.LIVE

    @pytest.mark.asyncio
    async def test_limit_and_newest_first(self, service_factory):
        alpha = [make_article("alpha", f"Alpha {h}", hours_ago=h) for h in (1, 5, 9, 13)]
        beta = [make_article("beta", f"Beta {h}", hours_ago=h) for h in (3, 7, 11, 15)]
        service = service_factory(news=[stub_news("alpha", records=alpha), stub_news("beta", records=beta)])

        result = await service.fetch_comprehensive_news("AAPL", limit=5, preferred_sources=["alpha", "beta"])

        assert [r.title for r in result.records] == ["Alpha 1", "Beta 3", "Alpha 5", "Beta 7", "Alpha 9"]
        published = [r.published_at for r in result.records]
        assert published == sorted(published, reverse=True)

    @pytest.mark.asyncio
    async def test_unknown_and_unconfigured_sources_not_attempted(self, service_factory):
        service = service_factory(
            news=[
                stub_news("alpha", records=[make_article("alpha", "Apple story")]),
                stub_news("beta", configured=False),
            ]
        )

        result = await service.fetch_comprehensive_news("AAPL", preferred_sources=["nope", "beta", "alpha"])

        assert [s.source_name for s in result.sources] == ["alpha"]
        assert service.news_adapters["beta"].queries == []

    @pytest.mark.asyncio
    async def test_adapter_errors_recorded_with_type(self, service_factory):
        service = service_factory(
            news=[
                stub_news("alpha", records=[make_article("alpha", "Apple story")]),
                stub_news("beta", error=TransportError("beta", "HTTP 500 from Beta", status_code=500)),
                stub_news("gamma", error=ParseError("gamma", "Expected a list of items")),
            ]
        )

        result = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha", "beta", "gamma"])

        errors = {s.source_name: (s.error_type, s.error_message) for s in result.sources if not s.ok}
        assert errors == {
            "beta": ("transport", "HTTP 500 from Beta"),
            "gamma": ("parse", "Expected a list of items"),
        }

    @pytest.mark.asyncio
    async def test_exhausted_budget_recorded_as_rate_limit(self, service_factory):
        service = service_factory(news=[stub_news("alpha", records=[make_article("alpha", "Apple story")])])
        service.context.rate_limiter.acquire = AsyncMock(side_effect=RateLimitExceededError("alpha", 100, 86400))

        result = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])

        assert result.sources[0].error_type == "rate_limit"
        assert result.data_status == DataStatus.SYNTHETIC
        assert service.news_adapters["alpha"].queries == []
        service.context.rate_limiter.acquire.assert_awaited_once_with("alpha")

    @pytest.mark.asyncio
    async def test_priority_mode_stops_at_first_usable_source(self, service_factory):
        service = service_factory(
            news=[
                stub_news("alpha", error=TransportError("alpha", "HTTP 503 from Alpha", status_code=503)),
                stub_news("beta", records=[make_article("beta", "Apple story")]),
                stub_news("gamma", records=[make_article("gamma", "Other story")]),
            ]
        )

        result = await service.fetch_comprehensive_news(
            "AAPL", preferred_sources=["alpha", "beta", "gamma"], mode=FetchMode.PRIORITY
        )

        assert [r.adapter for r in result.records] == ["beta"]
        assert [s.source_name for s in result.sources] == ["alpha", "beta"]
        assert service.news_adapters["gamma"].queries == []
        # a single source gets the whole limit
        assert service.news_adapters["beta"].queries[0].limit == 20


# ============================================================================
# FALLBACK
# ============================================================================

class TestFallback:

    @pytest.mark.asyncio
    async def test_no_configured_sources_gives_synthetic_news(self, context_factory):
        context = context_factory()
        service = MarketAggregatorService(
            context,
            generator=SyntheticDataGenerator(rng=random.Random(1), clock=lambda: NOW),
        )

        result = await service.fetch_comprehensive_news("ZZZZ")

        assert result.provenance == Provenance.SYNTHETIC
        assert result.data_status == DataStatus.SYNTHETIC
        assert result.is_synthetic
        assert result.sources == []
        assert len(result.records) == 6
        assert all("ZZZZ" in r.title for r in result.records)
        assert all(r.provenance == Provenance.SYNTHETIC for r in result.records)
        assert result.overall_sentiment is not None

        published = [r.published_at for r in result.records]
        assert published == sorted(published, reverse=True)

    @pytest.mark.asyncio
    async def test_all_sources_failed_keeps_manifest(self, service_factory):
        service = service_factory(
            news=[stub_news("alpha", error=TransportError("alpha", "HTTP 500 from Alpha", status_code=500))]
        )

        result = await service.fetch_comprehensive_news("MSFT", limit=3, preferred_sources=["alpha"])

        assert result.data_status == DataStatus.SYNTHETIC
        assert len(result.records) == 3
        assert [(s.source_name, s.ok) for s in result.sources] == [("alpha", False)]

    @pytest.mark.asyncio
    async def test_fallback_disabled_returns_empty(self, service_factory):
        service = service_factory(news=[stub_news("alpha", error=ParseError("alpha", "bad"))])

        result = await service.fetch_comprehensive_news(
            "MSFT", preferred_sources=["alpha"], allow_synthetic=False
        )

        assert result.records == []
        assert result.data_status == DataStatus.EMPTY
        assert result.provenance == Provenance.LIVE
        assert len(service.context.cache) == 0

    @pytest.mark.asyncio
    async def test_synthetic_results_not_cached_by_default(self, service_factory):
        service = service_factory()
        query = NewsQuery(symbol="ZZZZ")

        await service.fetch_comprehensive(query)

        assert query.cache_key() not in service.context.cache

    @pytest.mark.asyncio
    async def test_synthetic_results_cached_when_enabled(self, service_factory):
        service = service_factory(CACHE_SYNTHETIC_RESULTS=True)
        query = NewsQuery(symbol="ZZZZ")

        await service.fetch_comprehensive(query)
        second = await service.fetch_comprehensive(query)

        assert second.cached is True


# ============================================================================
# GAINERS
# ============================================================================

class TestGainers:

    @pytest.mark.asyncio
    async def test_priority_skips_failed_and_unusable_sources(self, service_factory):
        service = service_factory(
            quotes=[
                stub_quotes("alpha", error=TransportError("alpha", "HTTP 429 from Alpha", status_code=429)),
                stub_quotes("beta", records=[make_quote("beta", "LOW", 0.4)]),
                stub_quotes("gamma", records=[make_quote("gamma", "ABC", 3.0), make_quote("gamma", "XYZ", 8.0)]),
                stub_quotes("delta", records=[make_quote("delta", "DEF", 9.0)]),
            ]
        )

        result = await service.fetch_gainers_comprehensive(preferred_sources=["alpha", "beta", "gamma", "delta"])

        assert [q.symbol for q in result.records] == ["XYZ", "ABC"]
        assert [s.source_name for s in result.sources] == ["alpha", "beta", "gamma"]
        assert result.sources[1].ok and result.sources[1].record_count == 1
        assert result.data_status == DataStatus.PARTIAL
        assert service.quote_adapters["delta"].calls == 0
        assert result.overall_sentiment is None

    @pytest.mark.asyncio
    async def test_parallel_merge_filters_dedups_and_sorts(self, service_factory):
        service = service_factory(
            quotes=[
                stub_quotes("alpha", records=[make_quote("alpha", "NVDA", 5.0), make_quote("alpha", "AMD", 2.0)]),
                stub_quotes("beta", records=[make_quote("beta", "NVDA", 4.9), make_quote("beta", "TSLA", 0.5)]),
            ]
        )

        result = await service.fetch_comprehensive(
            GainersQuery(mode=FetchMode.PARALLEL, preferred_sources=("alpha", "beta"))
        )

        assert [(q.symbol, q.source_name) for q in result.records] == [("NVDA", "alpha"), ("AMD", "alpha")]

    @pytest.mark.asyncio
    async def test_synthetic_gainers_respect_min_change(self, service_factory):
        service = service_factory(quotes=[stub_quotes("alpha", error=ParseError("alpha", "bad"))])

        result = await service.fetch_gainers_comprehensive(
            limit=5, min_percent_change=2.0, preferred_sources=["alpha"]
        )

        assert result.data_status == DataStatus.SYNTHETIC
        assert 0 < len(result.records) <= 5
        assert all(q.percent_change >= 2.0 for q in result.records)
        changes = [q.percent_change for q in result.records]
        assert changes == sorted(changes, reverse=True)

    @pytest.mark.asyncio
    async def test_fetch_top_gainers_returns_records(self, service_factory):
        service = service_factory(quotes=[stub_quotes("alpha", records=[make_quote("alpha", "ABC", 3.0)])])
        service.settings.GAINERS_DEFAULT_SOURCES = "alpha"

        quotes = await service.fetch_top_gainers(limit=3)

        assert [q.symbol for q in quotes] == ["ABC"]


# ============================================================================
# CACHE / VALIDATION / SENTIMENT
# ============================================================================

class TestCacheAndValidation:

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, service_factory):
        service = service_factory(news=[stub_news("alpha", records=[make_article("alpha", "Apple story")])])

        first = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])
        second = await service.fetch_comprehensive_news("aapl", preferred_sources=["alpha"])

        assert first.cached is False
        assert second.cached is True
        assert second.records == first.records
        assert len(service.news_adapters["alpha"].queries) == 1

    @pytest.mark.asyncio
    async def test_cached_payload_isolated_from_callers(self, service_factory):
        service = service_factory(news=[stub_news("alpha", records=[make_article("alpha", "Apple story")])])

        first = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])
        first.records.clear()
        first.sources.clear()

        second = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])
        assert second.cached is True
        assert len(second.records) == 1
        assert [s.source_name for s in second.sources] == ["alpha"]

        second.records.append(make_article("alpha", "Injected story"))
        third = await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])
        assert [r.title for r in third.records] == ["Apple story"]
        assert len(service.news_adapters["alpha"].queries) == 1

    @pytest.mark.asyncio
    async def test_clear_cache(self, service_factory):
        service = service_factory(news=[stub_news("alpha", records=[make_article("alpha", "Apple story")])])

        await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])
        assert service.get_cache_stats().size == 1

        service.clear_cache()
        await service.fetch_comprehensive_news("AAPL", preferred_sources=["alpha"])

        assert len(service.news_adapters["alpha"].queries) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("symbol", ["", "   ", "AA PL", "$$$"])
    async def test_invalid_symbol(self, service_factory, symbol):
        service = service_factory()

        with pytest.raises(ValidationError):
            await service.fetch_comprehensive_news(symbol)

    @pytest.mark.asyncio
    async def test_invalid_limit(self, service_factory):
        with pytest.raises(ValidationError):
            await service_factory().fetch_gainers_comprehensive(limit=0)

    @pytest.mark.asyncio
    async def test_unsupported_query_type(self, service_factory):
        with pytest.raises(ValidationError):
            await service_factory().fetch_comprehensive({"symbol": "AAPL"})

    def test_bulk_sentiment(self, service_factory):
        service = service_factory()
        quotes = [make_quote("yahoo", "UP", 5.5), make_quote("yahoo", "FLAT", 0.2)]

        results = service.analyze_bulk_sentiment(quotes, now=NOW)

        assert set(results) == {"UP", "FLAT"}
        assert results["UP"].label == SentimentLabel.POSITIVE
        assert results["FLAT"].label == SentimentLabel.NEUTRAL
        assert results["UP"].last_update == NOW
