# src/market_aggregator/schemas/results.py
"""
Result Schemas
Per-source manifest entries, sentiment summaries and the aggregate envelope
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from src.market_aggregator.schemas.query import GainersQuery, NewsQuery
from src.market_aggregator.schemas.records import (
    NewsRecord,
    Provenance,
    QuoteRecord,
    SentimentLabel,
)


RecordT = TypeVar("RecordT", NewsRecord, QuoteRecord)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SourceStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class DataStatus(str, Enum):
    """How much of an aggregate is live data"""
    LIVE = "live"            # every attempted source succeeded
    PARTIAL = "partial"      # some sources failed, data is still live
    SYNTHETIC = "synthetic"  # generated fallback
    EMPTY = "empty"          # nothing usable and fallback disabled


class SourceResult(BaseModel):
    """One manifest entry per attempted adapter"""
    source_name: str
    status: SourceStatus
    record_count: int = 0
    error_message: Optional[str] = None
    error_type: Optional[str] = Field(None, description="configuration/transport/rate_limit/parse/timeout/error")
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == SourceStatus.SUCCESS


class SentimentDistribution(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class SentimentSummary(BaseModel):
    """Aggregate sentiment over a record set"""
    score: float = Field(..., ge=-1.0, le=1.0)
    label: SentimentLabel
    confidence: float = Field(..., ge=0.0, le=100.0)
    distribution: SentimentDistribution
    scored_count: int = 0


class SentimentResult(BaseModel):
    """Metric-based sentiment of one quote"""
    score: float = Field(..., ge=-1.0, le=1.0)
    label: SentimentLabel
    confidence: float = Field(..., ge=0.0, le=100.0)
    factors: Dict[str, Any] = Field(default_factory=dict)
    last_update: datetime = Field(default_factory=utc_now)


class CacheStats(BaseModel):
    size: int
    capacity: int
    ttl_seconds: float
    keys: List[str] = Field(default_factory=list)
    hits: int = 0
    misses: int = 0
    evictions: int = 0


class AggregateResult(BaseModel, Generic[RecordT]):
    """
    Outcome of one aggregation.

    Callers tell live / partial / synthetic apart from ``data_status``,
    ``provenance`` and the ``sources`` manifest.
    """
    query: Union[NewsQuery, GainersQuery]
    records: List[RecordT] = Field(default_factory=list)
    sources: List[SourceResult] = Field(default_factory=list)
    overall_sentiment: Optional[SentimentSummary] = None
    fetched_at: datetime = Field(default_factory=utc_now)
    provenance: Provenance = Provenance.LIVE
    data_status: DataStatus = DataStatus.LIVE
    cached: bool = False

    @property
    def successful_sources(self) -> List[str]:
        return [s.source_name for s in self.sources if s.ok]

    @property
    def failed_sources(self) -> List[str]:
        return [s.source_name for s in self.sources if not s.ok]

    @property
    def is_synthetic(self) -> bool:
        return self.provenance == Provenance.SYNTHETIC
