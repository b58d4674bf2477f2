# src/market_aggregator/services/aggregator_service.py
"""
Market Aggregator Service
Main orchestration service that combines all adapters and services
"""

import math
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from src.core.logging import FetchContext
from src.market_aggregator.context import AggregatorContext
from src.market_aggregator.errors import MarketAggregatorError, ValidationError
from src.market_aggregator.providers.base_provider import BaseNewsAdapter, BaseQuoteAdapter, BaseSourceAdapter
from src.market_aggregator.providers.registry import build_news_adapters, build_quote_adapters
from src.market_aggregator.schemas.query import FetchMode, GainersQuery, NewsQuery, ResourceKind
from src.market_aggregator.schemas.records import NewsRecord, Provenance, QuoteRecord, SentimentLabel
from src.market_aggregator.schemas.results import (
    AggregateResult,
    CacheStats,
    DataStatus,
    SentimentResult,
    SourceResult,
    SourceStatus,
)
from src.market_aggregator.services.deduplication import DeduplicationService
from src.market_aggregator.services.sentiment_scorer import SentimentScorer
from src.market_aggregator.services.synthetic_generator import SyntheticDataGenerator
from src.utils.graceful_degradation import DegradationConfig, TaskResult, execute_with_degradation
from src.utils.logger.custom_logging import LoggerMixin


Query = Union[NewsQuery, GainersQuery]
Record = Union[NewsRecord, QuoteRecord]


class MarketAggregatorService(LoggerMixin):
    """
    Main service for news and gainers aggregation.

    Pipeline:
    1. Cache check
    2. Resolve candidates (preferred sources that are configured)
    3. Invoke adapters: all at once (PARALLEL) or one by one (PRIORITY)
    4. Build the manifest from every attempted adapter
    5. Zero usable records -> synthetic fallback (manifest kept)
    6. Merge -> filter -> deduplicate -> sort -> limit
    7. Aggregate sentiment (news)
    8. Cache write
    """

    def __init__(
        self,
        context: AggregatorContext,
        news_adapters: Optional[Union[Mapping[str, BaseNewsAdapter], Iterable[BaseNewsAdapter]]] = None,
        quote_adapters: Optional[Union[Mapping[str, BaseQuoteAdapter], Iterable[BaseQuoteAdapter]]] = None,
        generator: Optional[SyntheticDataGenerator] = None,
        scorer: Optional[SentimentScorer] = None,
    ):
        self.context = context
        self.settings = context.settings

        self.news_adapters = self._index_adapters(
            news_adapters if news_adapters is not None else build_news_adapters(context)
        )
        self.quote_adapters = self._index_adapters(
            quote_adapters if quote_adapters is not None else build_quote_adapters(context)
        )

        self.generator = generator or SyntheticDataGenerator()
        self.scorer = scorer or SentimentScorer(context_weight=self.settings.SENTIMENT_CONTEXT_WEIGHT)
        self.dedup_service = DeduplicationService()

        self.logger.info(
            f"[Aggregator] Initialized: news={list(self.news_adapters)}, "
            f"gainers={list(self.quote_adapters)}"
        )

    @staticmethod
    def _index_adapters(adapters) -> Dict[str, BaseSourceAdapter]:
        if isinstance(adapters, Mapping):
            return dict(adapters)
        return {adapter.name: adapter for adapter in adapters}

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def fetch_comprehensive(self, query: Query) -> AggregateResult:
        """
        Aggregate one query across its adapter family.

        Never raises for source failures; only ValidationError for bad input.
        """
        if not isinstance(query, (NewsQuery, GainersQuery)):
            raise ValidationError(f"Unsupported query type: {type(query).__name__}")

        cache_key = query.cache_key()
        cached = self.context.cache.get(cache_key)
        if cached is not None:
            self.logger.info(f"[Aggregator] Cache hit: {cache_key}")
            return cached.model_copy(update={"cached": True}, deep=True)

        async with FetchContext(prefix=query.kind.value):
            result = await self._aggregate(query)

            if self._should_cache(result):
                self.context.cache.set(cache_key, result.model_copy(deep=True))

            self.logger.info(
                f"[Aggregator] Complete: {len(result.records)} records, "
                f"status={result.data_status.value}, "
                f"sources={[(s.source_name, s.status.value) for s in result.sources]}"
            )
        return result

    async def fetch_comprehensive_news(
        self,
        symbol: str,
        limit: int = 20,
        days: int = 7,
        preferred_sources: Optional[Sequence[str]] = None,
        mode: FetchMode = FetchMode.PARALLEL,
        allow_synthetic: bool = True,
    ) -> AggregateResult:
        query = NewsQuery.create(
            symbol=symbol,
            limit=limit,
            days=days,
            preferred_sources=preferred_sources,
            mode=mode,
            allow_synthetic=allow_synthetic,
        )
        return await self.fetch_comprehensive(query)

    async def fetch_gainers_comprehensive(
        self,
        limit: int = 15,
        min_percent_change: float = 1.0,
        preferred_sources: Optional[Sequence[str]] = None,
        mode: FetchMode = FetchMode.PRIORITY,
        allow_synthetic: bool = True,
    ) -> AggregateResult:
        query = GainersQuery.create(
            limit=limit,
            min_percent_change=min_percent_change,
            preferred_sources=preferred_sources,
            mode=mode,
            allow_synthetic=allow_synthetic,
        )
        return await self.fetch_comprehensive(query)

    async def fetch_top_gainers(self, limit: int = 15, min_percent_change: float = 1.0) -> List[QuoteRecord]:
        result = await self.fetch_gainers_comprehensive(limit=limit, min_percent_change=min_percent_change)
        return list(result.records)

    def analyze_bulk_sentiment(
        self,
        quotes: Iterable[QuoteRecord],
        now: Optional[datetime] = None,
    ) -> Dict[str, SentimentResult]:
        """Metric-based sentiment per symbol; later duplicates of a symbol overwrite earlier ones."""
        results: Dict[str, SentimentResult] = {}
        for quote in quotes:
            if not isinstance(quote, QuoteRecord):
                raise ValidationError(f"Expected QuoteRecord, got {type(quote).__name__}")
            try:
                results[quote.symbol] = self.scorer.score_quote(quote, now=now)
            except (ValueError, ArithmeticError) as e:
                self.logger.warning(f"[Aggregator] Sentiment failed for {quote.symbol}: {e}")
                results[quote.symbol] = SentimentResult(
                    score=0.0,
                    label=SentimentLabel.NEUTRAL,
                    confidence=50.0,
                    last_update=now or quote.last_update,
                    factors={"error": True, "source": quote.source_name},
                )
        return results

    def clear_cache(self) -> None:
        self.context.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.context.cache.get_stats()

    async def close(self):
        """Cleanup resources"""
        await self.context.aclose()

    # ========================================================================
    # CANDIDATES
    # ========================================================================

    def _adapter_family(self, query: Query) -> Dict[str, BaseSourceAdapter]:
        return self.news_adapters if query.kind == ResourceKind.NEWS else self.quote_adapters

    def _default_sources(self, query: Query) -> List[str]:
        if query.kind == ResourceKind.NEWS:
            return self.settings.news_default_sources
        return self.settings.gainers_default_sources

    def _resolve_candidates(self, query: Query) -> List[BaseSourceAdapter]:
        family = self._adapter_family(query)
        requested = list(query.preferred_sources) if query.preferred_sources is not None else self._default_sources(query)

        candidates = []
        for name in requested:
            adapter = family.get(name)
            if adapter is None:
                self.logger.warning(f"[Aggregator] Unknown {query.kind.value} source '{name}', ignored")
                continue
            if not adapter.is_configured:
                self.logger.info(f"[Aggregator] {name} not configured, skipped")
                continue
            candidates.append(adapter)

        self.logger.info(f"[Aggregator] Available sources: {[a.name for a in candidates]}")
        return candidates

    def _query_for(self, adapter: BaseSourceAdapter, query: Query, candidate_count: int) -> Query:
        """Split the news limit across limit-driven adapters: ceil(limit / n)."""
        if isinstance(query, NewsQuery) and getattr(adapter, "limit_driven", False) and candidate_count > 1:
            return query.model_copy(update={"limit": math.ceil(query.limit / candidate_count)})
        return query

    # ========================================================================
    # INVOCATION
    # ========================================================================

    def _degradation_config(self) -> DegradationConfig:
        return DegradationConfig(task_timeout=self.settings.REQUEST_TIMEOUT)

    def _source_result(self, adapter: BaseSourceAdapter, task: TaskResult) -> SourceResult:
        elapsed_ms = int(task.elapsed_ms)
        if task.success:
            return SourceResult(
                source_name=adapter.name,
                status=SourceStatus.SUCCESS,
                record_count=len(task.result or []),
                elapsed_ms=elapsed_ms,
            )

        error = task.error
        if task.timed_out:
            message = f"Timed out after {self.settings.REQUEST_TIMEOUT}s"
            error_type = "timeout"
        elif isinstance(error, MarketAggregatorError):
            message = error.message
            error_type = error.error_type
        else:
            message = f"{error.__class__.__name__}: {error}"
            error_type = "error"

        return SourceResult(
            source_name=adapter.name,
            status=SourceStatus.ERROR,
            error_message=message,
            error_type=error_type,
            elapsed_ms=elapsed_ms,
        )

    async def _run_parallel(
        self, query: Query, candidates: List[BaseSourceAdapter]
    ) -> Tuple[List[Record], List[SourceResult]]:
        """All candidates at once; wait for every one to settle."""
        outcome = await execute_with_degradation(
            tasks=[adapter.fetch(self._query_for(adapter, query, len(candidates))) for adapter in candidates],
            config=self._degradation_config(),
            task_names=[adapter.name for adapter in candidates],
        )

        merged: List[Record] = []
        sources: List[SourceResult] = []
        for adapter, task in zip(candidates, outcome.all_results):
            sources.append(self._source_result(adapter, task))
            if task.success:
                merged.extend(task.result or [])
        return self._apply_filters(query, merged), sources

    async def _run_priority(
        self, query: Query, candidates: List[BaseSourceAdapter]
    ) -> Tuple[List[Record], List[SourceResult]]:
        """One candidate at a time; stop at the first with usable records."""
        sources: List[SourceResult] = []
        for adapter in candidates:
            outcome = await execute_with_degradation(
                tasks=[adapter.fetch(query)],
                config=self._degradation_config(),
                task_names=[adapter.name],
            )
            task = outcome.all_results[0]
            sources.append(self._source_result(adapter, task))

            if task.success:
                usable = self._apply_filters(query, list(task.result or []))
                if usable:
                    self.logger.info(f"[Aggregator] {adapter.name} yielded {len(usable)} usable records")
                    return usable, sources
                self.logger.info(f"[Aggregator] {adapter.name} returned nothing usable, trying next")
        return [], sources

    # ========================================================================
    # PIPELINE
    # ========================================================================

    def _apply_filters(self, query: Query, records: List[Record]) -> List[Record]:
        if isinstance(query, GainersQuery):
            return [r for r in records if r.percent_change >= query.min_percent_change]
        return records

    def _finalize(self, query: Query, records: List[Record]) -> List[Record]:
        """Deduplicate, sort (stable), then truncate."""
        unique = self.dedup_service.deduplicate(records)
        if isinstance(query, NewsQuery):
            ordered = sorted(unique, key=lambda r: r.published_at, reverse=True)
        else:
            ordered = sorted(unique, key=lambda r: r.percent_change, reverse=True)
        return ordered[: query.limit]

    async def _aggregate(self, query: Query) -> AggregateResult:
        self.logger.info(f"[Aggregator] Starting aggregation: {query.cache_key()}")

        candidates = self._resolve_candidates(query)
        if not candidates:
            self.logger.warning("[Aggregator] No configured sources, using fallback")
            return self._fallback(query, sources=[])

        if query.mode == FetchMode.PARALLEL:
            merged, sources = await self._run_parallel(query, candidates)
        else:
            merged, sources = await self._run_priority(query, candidates)

        if not merged:
            self.logger.warning("[Aggregator] No usable records from any source, using fallback")
            return self._fallback(query, sources=sources)

        records = self._finalize(query, merged)
        failed = any(not s.ok for s in sources)

        return AggregateResult(
            query=query,
            records=records,
            sources=sources,
            overall_sentiment=self.scorer.aggregate(records) if isinstance(query, NewsQuery) else None,
            provenance=Provenance.LIVE,
            data_status=DataStatus.PARTIAL if failed else DataStatus.LIVE,
        )

    def _fallback(self, query: Query, sources: List[SourceResult]) -> AggregateResult:
        if not query.allow_synthetic:
            return AggregateResult(
                query=query,
                records=[],
                sources=sources,
                provenance=Provenance.LIVE,
                data_status=DataStatus.EMPTY,
            )

        if isinstance(query, NewsQuery):
            generated = self.generator.generate_news(query.symbol)
        else:
            generated = self._apply_filters(query, self.generator.generate_quotes())

        records = self._finalize(query, generated)
        return AggregateResult(
            query=query,
            records=records,
            sources=sources,
            overall_sentiment=self.scorer.aggregate(records) if isinstance(query, NewsQuery) else None,
            provenance=Provenance.SYNTHETIC,
            data_status=DataStatus.SYNTHETIC,
        )

    def _should_cache(self, result: AggregateResult) -> bool:
        if result.data_status == DataStatus.EMPTY:
            return False
        if result.provenance == Provenance.SYNTHETIC:
            return self.settings.CACHE_SYNTHETIC_RESULTS
        return True
