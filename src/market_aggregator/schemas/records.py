# src/market_aggregator/schemas/records.py
"""
Normalized Record Schemas
Shape every provider converts to; provider field names stop at the adapter
"""

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEDUP_TITLE_LENGTH = 50

POSITIVE_THRESHOLD = 0.2
NEGATIVE_THRESHOLD = -0.2


class Provenance(str, Enum):
    """Where a record came from"""
    LIVE = "live"
    SYNTHETIC = "synthetic"


class NewsCategory(str, Enum):
    EARNINGS = "earnings"
    ANALYST = "analyst"
    PARTNERSHIP = "partnership"
    REGULATORY = "regulatory"
    MARKET = "market"
    PRODUCT = "product"
    MANAGEMENT = "management"
    CORPORATE = "corporate"


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"

    @classmethod
    def from_score(cls, score: float) -> "SentimentLabel":
        if score > POSITIVE_THRESHOLD:
            return cls.POSITIVE
        if score < NEGATIVE_THRESHOLD:
            return cls.NEGATIVE
        return cls.NEUTRAL


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class NewsRecord(BaseModel):
    """
    Normalized news article.

    ``source_name`` is the publisher (Reuters, Benzinga, ...), ``adapter`` the
    provider that delivered it.
    """
    id: Optional[str] = Field(None, description="Stable id, generated from url/title hash when absent")
    title: str = Field(..., description="Headline")
    description: str = Field("", description="Summary/snippet")
    source_name: str = Field("Unknown", description="Publisher name")
    published_at: datetime = Field(..., description="Publication time (UTC)")
    url: Optional[str] = None
    image_url: Optional[str] = None

    sentiment: Optional[float] = Field(None, ge=-1.0, le=1.0, description="Numeric score, None if unknown")
    category: NewsCategory = NewsCategory.CORPORATE
    confidence: float = Field(0.0, ge=0.0, le=100.0)
    relevance_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    provenance: Provenance = Provenance.LIVE
    adapter: str = Field(..., description="Adapter that produced the record")

    model_config = ConfigDict(frozen=True)

    @field_validator("published_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_validator("title", "description", "source_name", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    def model_post_init(self, __context) -> None:
        if not self.id:
            basis = self.url or f"{self.title}|{self.source_name}"
            digest = hashlib.sha256(basis.encode()).hexdigest()[:16]
            # frozen model: bypass __setattr__ once during construction
            object.__setattr__(self, "id", f"{self.adapter}_{digest}")

    @property
    def dedup_key(self) -> str:
        return f"{self.title.lower()[:DEDUP_TITLE_LENGTH]}_{self.source_name}"

    @property
    def sentiment_label(self) -> Optional[SentimentLabel]:
        if self.sentiment is None:
            return None
        return SentimentLabel.from_score(self.sentiment)


class QuoteRecord(BaseModel):
    """Normalized market quote (one gainer)"""
    symbol: str
    display_name: str
    price: float = Field(..., ge=0.0)
    percent_change: float
    change_amount: float = 0.0
    volume: int = Field(0, ge=0)
    sector: Optional[str] = None
    market_cap: Optional[str] = Field(None, description="Human readable, e.g. 2.9T, 267B")
    last_update: datetime

    provenance: Provenance = Provenance.LIVE
    source_name: str = Field(..., description="Adapter that produced the record")

    model_config = ConfigDict(frozen=True)

    @field_validator("symbol", mode="before")
    @classmethod
    def upper_symbol(cls, v):
        return str(v).strip().upper()

    @field_validator("last_update")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def dedup_key(self) -> str:
        return self.symbol
