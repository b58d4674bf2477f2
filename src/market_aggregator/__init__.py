"""
Query -> Marketaux ────┐
         Finnhub ──────┤
         StockNewsAPI ─┼→ Normalize → Filter → Dedupe → Sort → Limit → Sentiment → AggregateResult
         AlphaVantage ─┤
         ...           ┘
              └─ no usable records → Synthetic fallback
"""
from src.market_aggregator.context import AggregatorContext
from src.market_aggregator.errors import (
    MarketAggregatorError,
    ConfigurationError,
    TransportError,
    RateLimitExceededError,
    ParseError,
    ValidationError,
)
from src.market_aggregator.schemas.query import NewsQuery, GainersQuery, ResourceKind, FetchMode
from src.market_aggregator.schemas.records import (
    NewsRecord,
    QuoteRecord,
    NewsCategory,
    Provenance,
    SentimentLabel,
)
from src.market_aggregator.schemas.results import (
    AggregateResult,
    SourceResult,
    SourceStatus,
    DataStatus,
    SentimentResult,
    SentimentSummary,
    CacheStats,
)

from src.market_aggregator.services.aggregator_service import MarketAggregatorService
from src.market_aggregator.services.cache_service import TTLCache
from src.market_aggregator.services.rate_limiter import ProviderRateLimiter
from src.market_aggregator.services.deduplication import DeduplicationService
from src.market_aggregator.services.sentiment_scorer import SentimentScorer
from src.market_aggregator.services.synthetic_generator import SyntheticDataGenerator
from src.market_aggregator.services.news_classifier import NewsClassifier

from src.market_aggregator.providers.registry import build_news_adapters, build_quote_adapters

__version__ = "1.0.0"
__all__ = [
    # Context
    "AggregatorContext",
    # Errors
    "MarketAggregatorError",
    "ConfigurationError",
    "TransportError",
    "RateLimitExceededError",
    "ParseError",
    "ValidationError",
    # Schemas
    "NewsQuery",
    "GainersQuery",
    "ResourceKind",
    "FetchMode",
    "NewsRecord",
    "QuoteRecord",
    "NewsCategory",
    "Provenance",
    "SentimentLabel",
    "AggregateResult",
    "SourceResult",
    "SourceStatus",
    "DataStatus",
    "SentimentResult",
    "SentimentSummary",
    "CacheStats",
    # Services
    "MarketAggregatorService",
    "TTLCache",
    "ProviderRateLimiter",
    "DeduplicationService",
    "SentimentScorer",
    "SyntheticDataGenerator",
    "NewsClassifier",
    # Providers
    "build_news_adapters",
    "build_quote_adapters",
]
