"""
Unit tests for query and record schemas
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.market_aggregator.errors import ValidationError
from src.market_aggregator.schemas.query import FetchMode, GainersQuery, NewsQuery, ResourceKind
from src.market_aggregator.schemas.records import NewsRecord, QuoteRecord, SentimentLabel


class TestQueries:

    def test_news_defaults(self):
        query = NewsQuery.create(symbol=" aapl ")

        assert query.symbol == "AAPL"
        assert (query.limit, query.days, query.mode) == (20, 7, FetchMode.PARALLEL)
        assert query.kind == ResourceKind.NEWS
        assert query.preferred_sources is None

    def test_gainers_defaults(self):
        query = GainersQuery.create()

        assert (query.limit, query.min_percent_change, query.mode) == (15, 1.0, FetchMode.PRIORITY)
        assert query.kind == ResourceKind.GAINERS

    def test_preferred_sources_normalized(self):
        query = NewsQuery.create(symbol="AAPL", preferred_sources="Finnhub, marketaux,finnhub,")
        assert query.preferred_sources == ("finnhub", "marketaux")

    def test_cache_key_covers_every_input(self):
        base = NewsQuery.create(symbol="AAPL")
        variants = [
            NewsQuery.create(symbol="MSFT"),
            NewsQuery.create(symbol="AAPL", limit=5),
            NewsQuery.create(symbol="AAPL", days=1),
            NewsQuery.create(symbol="AAPL", preferred_sources=["finnhub"]),
            NewsQuery.create(symbol="AAPL", mode=FetchMode.PRIORITY),
            NewsQuery.create(symbol="AAPL", allow_synthetic=False),
        ]
        keys = {base.cache_key()} | {v.cache_key() for v in variants}

        assert len(keys) == len(variants) + 1
        assert NewsQuery.create(symbol="aapl").cache_key() == base.cache_key()

    def test_gainers_cache_key(self):
        assert GainersQuery.create(limit=10, min_percent_change=2.5).cache_key() == "gainers:l10:m2.5:*:priority:s1"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"symbol": ""},
            {"symbol": None},
            {"symbol": "AAPL", "limit": 0},
            {"symbol": "AAPL", "limit": 101},
            {"symbol": "AAPL", "days": 0},
        ],
    )
    def test_invalid_news_query(self, kwargs):
        with pytest.raises(ValidationError) as exc_info:
            NewsQuery.create(**kwargs)
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.error_type == "validation"

    def test_negative_min_change_rejected(self):
        with pytest.raises(ValidationError):
            GainersQuery.create(min_percent_change=-1)

    def test_queries_are_immutable(self):
        query = NewsQuery.create(symbol="AAPL")
        with pytest.raises(PydanticValidationError):
            query.limit = 5


class TestRecords:

    def test_published_at_normalized_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        record = NewsRecord(
            title="T",
            published_at=datetime(2024, 2, 28, 9, 30, tzinfo=eastern),
            adapter="stocknewsapi",
        )
        assert record.published_at == datetime(2024, 2, 28, 14, 30, tzinfo=timezone.utc)
        assert record.published_at.tzinfo == timezone.utc

    def test_naive_timestamp_assumed_utc(self):
        record = NewsRecord(title="T", published_at=datetime(2024, 2, 28, 9, 30), adapter="finnhub")
        assert record.published_at.tzinfo == timezone.utc

    def test_sentiment_bounds(self):
        with pytest.raises(PydanticValidationError):
            NewsRecord(title="T", published_at=datetime(2024, 2, 28), sentiment=1.5, adapter="finnhub")

    def test_sentiment_label(self):
        record = NewsRecord(title="T", published_at=datetime(2024, 2, 28), sentiment=-0.6, adapter="finnhub")
        assert record.sentiment_label == SentimentLabel.NEGATIVE
        unscored = NewsRecord(title="T", published_at=datetime(2024, 2, 28), adapter="finnhub")
        assert unscored.sentiment_label is None

    def test_quote_symbol_uppercased(self):
        quote = QuoteRecord(
            symbol=" nvda ",
            display_name="NVIDIA",
            price=1.0,
            percent_change=1.0,
            last_update=datetime(2024, 2, 28),
            source_name="yahoo",
        )
        assert quote.symbol == "NVDA"
        assert quote.dedup_key == "NVDA"

    def test_negative_price_rejected(self):
        with pytest.raises(PydanticValidationError):
            QuoteRecord(
                symbol="X",
                display_name="X",
                price=-1.0,
                percent_change=1.0,
                last_update=datetime(2024, 2, 28),
                source_name="yahoo",
            )

    def test_records_are_immutable(self):
        assert NewsRecord.model_config["frozen"] is True
        assert QuoteRecord.model_config["frozen"] is True

        record = NewsRecord(title="T", published_at=datetime(2024, 2, 28), adapter="finnhub")
        with pytest.raises(PydanticValidationError):
            record.title = "changed"
