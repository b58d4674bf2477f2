# src/market_aggregator/services/sentiment_scorer.py
"""
Sentiment Scorer

Two deterministic scorers sharing one label law:
- text-based, for news (keyword hits normalized by sqrt of matched words)
- metric-based, for quotes (price move, volume, sector, market context)

Label: > 0.2 Positive, < -0.2 Negative, else Neutral.
Confidence: |score| * 100.
"""

import math
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from src.market_aggregator.schemas.records import NewsRecord, QuoteRecord, SentimentLabel
from src.market_aggregator.schemas.results import (
    SentimentDistribution,
    SentimentResult,
    SentimentSummary,
)
from src.market_aggregator.services.market_clock import MarketContextFn, default_market_context


POSITIVE_WORDS = (
    "beat", "strong", "growth", "profit", "gain", "rise", "up", "positive",
    "good", "success", "win", "boost", "improve", "bullish", "upgrade",
    "buy", "outperform", "exceed", "higher", "increase", "rally", "surge",
)

NEGATIVE_WORDS = (
    "miss", "weak", "loss", "fall", "down", "negative", "bad", "fail",
    "drop", "decline", "bearish", "concern", "risk", "downgrade", "sell",
    "underperform", "lower", "decrease", "crash", "plunge", "warning",
)

KEYWORD_WEIGHT = 0.1

# (minimum |percent change|, base score), checked top-down
PRICE_CHANGE_STEPS = (
    (5.0, 0.9),
    (4.0, 0.7),
    (3.0, 0.5),
    (2.0, 0.3),
    (1.0, 0.1),
)

# (volume above, bonus)
VOLUME_STEPS = (
    (50_000_000, 0.15),
    (25_000_000, 0.10),
    (10_000_000, 0.05),
)

HOT_SECTOR_BONUS: Dict[str, float] = {
    "Technology": 0.10,
    "Semiconductors": 0.08,
    "Software": 0.06,
    "E-commerce": 0.04,
    "Fintech": 0.02,
}

LARGE_CAP_THRESHOLD = 1e12
LARGE_CAP_DAMPENING = 0.9

DEFAULT_CONTEXT_WEIGHT = 0.2

_CAP_PATTERN = re.compile(r"^\$?\s*([\d.,]+)\s*([KMBT]?)$", re.I)
_CAP_MULTIPLIERS = {"": 1.0, "K": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}


def clamp(score: float) -> float:
    return max(-1.0, min(1.0, score))


def label_for(score: float) -> SentimentLabel:
    return SentimentLabel.from_score(score)


def confidence_for(score: float) -> float:
    return min(100.0, abs(score) * 100)


def score_text(text: Optional[str]) -> float:
    """
    Keyword sentiment of free text.

    Each whitespace token that contains a positive keyword adds 0.1, one that
    contains a negative keyword subtracts 0.1 (a token can do both). The sum
    is divided by sqrt(number of hits) and clamped to [-1, 1].
    """
    if not text:
        return 0.0

    score = 0.0
    hits = 0
    for word in text.lower().split():
        if any(pos in word for pos in POSITIVE_WORDS):
            score += KEYWORD_WEIGHT
            hits += 1
        if any(neg in word for neg in NEGATIVE_WORDS):
            score -= KEYWORD_WEIGHT
            hits += 1

    if hits:
        score = score / math.sqrt(hits)
    return clamp(score)


def parse_market_cap(value: Optional[str]) -> Optional[float]:
    """'2.9T' -> 2.9e12, '$267B' -> 2.67e11; None when unparseable."""
    if not value:
        return None
    match = _CAP_PATTERN.match(value.strip())
    if not match:
        return None
    try:
        number = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    return number * _CAP_MULTIPLIERS[match.group(2).upper()]


def trend_for(percent_change: float) -> str:
    magnitude = abs(percent_change)
    direction = "bullish" if percent_change >= 0 else "bearish"
    if magnitude >= 5:
        return f"very_{direction}"
    if magnitude >= 3:
        return direction
    if magnitude >= 2:
        return f"moderately_{direction}"
    if magnitude >= 1:
        return f"slightly_{direction}"
    return "neutral"


def volatility_for(percent_change: float) -> str:
    magnitude = abs(percent_change)
    if magnitude >= 5:
        return "high"
    if magnitude >= 2:
        return "medium"
    return "low"


def metric_base_score(quote: QuoteRecord) -> float:
    """Price/volume/sector score before market context, not clamped."""
    magnitude = abs(quote.percent_change)
    step = 0.0
    for threshold, value in PRICE_CHANGE_STEPS:
        if magnitude >= threshold:
            step = value
            break
    score = math.copysign(step, quote.percent_change) if step else 0.0

    for threshold, bonus in VOLUME_STEPS:
        if quote.volume > threshold:
            score += bonus
            break

    score += HOT_SECTOR_BONUS.get(quote.sector or "", 0.0)

    cap = parse_market_cap(quote.market_cap)
    if cap is not None and cap >= LARGE_CAP_THRESHOLD:
        score *= LARGE_CAP_DAMPENING

    return score


class SentimentScorer:
    """
    Holds the market-context function and its blend weight.

    Scoring never consults the wall clock: quote scoring uses the ``now``
    argument or the quote's own ``last_update``.
    """

    def __init__(
        self,
        context_fn: MarketContextFn = default_market_context,
        context_weight: float = DEFAULT_CONTEXT_WEIGHT,
    ):
        if not 0.0 <= context_weight <= 1.0:
            raise ValueError("context_weight must be within [0, 1]")
        self.context_fn = context_fn
        self.context_weight = context_weight

    # ========================================================================
    # NEWS
    # ========================================================================

    def score_text(self, text: Optional[str]) -> float:
        return score_text(text)

    def score_article(self, title: Optional[str], description: Optional[str] = None) -> float:
        return score_text(f"{title or ''} {description or ''}".strip())

    def aggregate(self, records: Iterable[NewsRecord]) -> Optional[SentimentSummary]:
        """
        Mean over records with a numeric score; None when there are none.
        """
        scores: List[float] = [r.sentiment for r in records if r.sentiment is not None]
        if not scores:
            return None

        distribution = SentimentDistribution()
        for s in scores:
            label = label_for(s)
            if label == SentimentLabel.POSITIVE:
                distribution.positive += 1
            elif label == SentimentLabel.NEGATIVE:
                distribution.negative += 1
            else:
                distribution.neutral += 1

        mean = clamp(sum(scores) / len(scores))
        return SentimentSummary(
            score=mean,
            label=label_for(mean),
            confidence=confidence_for(mean),
            distribution=distribution,
            scored_count=len(scores),
        )

    # ========================================================================
    # QUOTES
    # ========================================================================

    def score_quote(self, quote: QuoteRecord, now: Optional[datetime] = None) -> SentimentResult:
        when = now or quote.last_update
        base = metric_base_score(quote)
        context = self.context_fn(when)
        score = clamp(base * (1 - self.context_weight) + context * self.context_weight)

        return SentimentResult(
            score=score,
            label=label_for(score),
            confidence=confidence_for(score),
            last_update=when,
            factors={
                "price_change": quote.percent_change,
                "volume": quote.volume,
                "sector": quote.sector,
                "market_cap": quote.market_cap,
                "base_score": round(base, 4),
                "market_context": round(context, 4),
                "context_weight": self.context_weight,
                "trend": trend_for(quote.percent_change),
                "volatility": volatility_for(quote.percent_change),
                "source": quote.source_name,
                "provenance": quote.provenance.value,
            },
        )
