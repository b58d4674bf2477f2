# src/market_aggregator/services/synthetic_generator.py
"""
Synthetic Data Generator

Last-resort data when no live source delivered anything. Output is plausible
rather than arbitrary so downstream scoring and display behave normally, and
every record is tagged Provenance.SYNTHETIC.

Quotes:
    baseline table  ->  4 variation factors (time of day, session, sector,
    symbol) averaged into one  ->  bounded random perturbation of price and
    change  ->  market-cap tier volume model with jitter, floored at 1M

News:
    6 templates with the symbol interpolated, distinct categories, published
    2-18 hours ago, preset sentiments spanning positive to negative
"""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from src.market_aggregator.schemas.records import NewsCategory, NewsRecord, Provenance, QuoteRecord
from src.market_aggregator.services.market_clock import is_market_open, to_market_time
from src.market_aggregator.services.sentiment_scorer import parse_market_cap
from src.utils.logger.custom_logging import LoggerMixin


SYNTHETIC_SOURCE = "synthetic"

MIN_VOLUME = 1_000_000


@dataclass(frozen=True)
class QuoteBaseline:
    symbol: str
    name: str
    sector: str
    base_price: float
    base_change: float
    market_cap: str


QUOTE_BASELINES: List[QuoteBaseline] = [
    QuoteBaseline("NVDA", "NVIDIA Corporation", "Technology", 875.60, 4.25, "2.1T"),
    QuoteBaseline("AMD", "Advanced Micro Devices Inc.", "Technology", 165.40, 3.78, "267B"),
    QuoteBaseline("TSLA", "Tesla Inc.", "Automotive", 248.90, 3.45, "792B"),
    QuoteBaseline("AAPL", "Apple Inc.", "Technology", 189.45, 2.98, "2.9T"),
    QuoteBaseline("GOOGL", "Alphabet Inc.", "Technology", 142.30, 2.67, "1.8T"),
    QuoteBaseline("MSFT", "Microsoft Corporation", "Technology", 415.20, 2.45, "3.1T"),
    QuoteBaseline("META", "Meta Platforms Inc.", "Technology", 485.75, 2.34, "1.2T"),
    QuoteBaseline("AMZN", "Amazon.com Inc.", "E-commerce", 178.25, 2.12, "1.8T"),
    QuoteBaseline("CRM", "Salesforce Inc.", "Software", 285.40, 1.98, "278B"),
    QuoteBaseline("NFLX", "Netflix Inc.", "Entertainment", 598.75, 1.87, "258B"),
    QuoteBaseline("ADBE", "Adobe Inc.", "Software", 545.30, 1.76, "245B"),
    QuoteBaseline("PYPL", "PayPal Holdings Inc.", "Fintech", 78.90, 1.65, "87B"),
    QuoteBaseline("INTC", "Intel Corporation", "Semiconductors", 42.15, 1.54, "171B"),
    QuoteBaseline("CSCO", "Cisco Systems Inc.", "Networking", 58.20, 1.43, "237B"),
    QuoteBaseline("ORCL", "Oracle Corporation", "Database", 125.80, 1.32, "354B"),
]

SECTOR_VOLATILITY: Dict[str, float] = {
    "Technology": 1.4,
    "Semiconductors": 1.3,
    "Software": 1.2,
    "Automotive": 1.1,
    "Entertainment": 1.0,
    "E-commerce": 1.1,
    "Fintech": 0.9,
    "Networking": 0.8,
    "Database": 0.7,
}

SYMBOL_VOLATILITY: Dict[str, float] = {
    "TSLA": 1.5,
    "NVDA": 1.3,
    "AMD": 1.3,
    "META": 1.2,
    "NFLX": 1.2,
    "AAPL": 1.0,
    "GOOGL": 1.0,
    "MSFT": 0.9,
    "AMZN": 1.1,
    "INTC": 0.8,
    "CSCO": 0.7,
    "ORCL": 0.7,
}

# (title, description, publisher, hours ago, sentiment, category, confidence)
NEWS_TEMPLATES = [
    (
        "{symbol} Reports Strong Q4 Earnings, Revenue Beats Expectations",
        "{symbol} announced quarterly earnings that exceeded analyst expectations, driven by strong "
        "revenue growth and improved operational efficiency. The company showed resilience in "
        "challenging market conditions.",
        "Demo Financial News", 2, 0.8, NewsCategory.EARNINGS, 85,
    ),
    (
        "Wall Street Analysts Upgrade {symbol} Price Target on Innovation Push",
        "Multiple Wall Street analysts have raised their price targets for {symbol} following the "
        "company's latest product innovation announcement and strategic market expansion plans.",
        "Demo Market Watch", 4, 0.6, NewsCategory.ANALYST, 90,
    ),
    (
        "{symbol} Faces New Regulatory Scrutiny Over Market Practices",
        "Regulatory authorities are examining {symbol}'s business practices amid growing concerns "
        "from competitors and consumer advocacy groups about market dominance.",
        "Demo Regulatory Times", 6, -0.3, NewsCategory.REGULATORY, 75,
    ),
    (
        "{symbol} Announces Strategic Partnership for AI Development",
        "{symbol} has entered into a strategic partnership with leading technology firms to "
        "accelerate artificial intelligence development and integration across its product portfolio.",
        "Demo Tech News", 8, 0.7, NewsCategory.PARTNERSHIP, 88,
    ),
    (
        "{symbol} Stock Shows Resilience Amid Market Volatility",
        "{symbol} shares demonstrated strong performance this week despite broader market "
        "uncertainty, with institutional investors showing continued confidence in the company's "
        "long-term strategy.",
        "Demo Investment Journal", 12, 0.4, NewsCategory.MARKET, 80,
    ),
    (
        "{symbol} Board Approves Major Share Buyback Program",
        "The company's board of directors has approved a significant share repurchase program, "
        "signaling strong confidence in future performance and commitment to shareholder value.",
        "Demo Corporate News", 18, 0.5, NewsCategory.CORPORATE, 82,
    ),
]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def time_of_day_factor(now: datetime) -> float:
    local = to_market_time(now)
    hour, minute = local.hour, local.minute
    if hour == 15 and minute >= 30:
        return 1.4  # closing rush
    if hour == 9:
        return 1.5  # opening bell
    if hour == 10:
        return 1.2
    if hour == 12:
        return 0.6  # lunch lull
    if hour in (14, 15):
        return 1.1
    if hour < 9 or hour > 16:
        return 0.4
    return 1.0


def session_factor(now: datetime) -> float:
    local = to_market_time(now)
    if local.weekday() >= 5:
        return 0.5
    if is_market_open(local):
        return 1.3
    return 0.7


def base_volume(market_cap: str) -> float:
    cap = parse_market_cap(market_cap) or 0.0
    if cap >= 1e12:
        return 20_000_000
    if cap >= 1e9:
        billions = cap / 1e9
        if billions > 500:
            return 25_000_000
        if billions > 100:
            return 35_000_000
        return 50_000_000
    return 10_000_000


class SyntheticDataGenerator(LoggerMixin):
    """
    Generates tagged synthetic quotes and news.

    Args:
        rng: random source; pass ``random.Random(seed)`` for reproducible output
        clock: returns the current UTC time
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.rng = rng or random.Random()
        self.clock = clock

    # ========================================================================
    # QUOTES
    # ========================================================================

    def variation_factor(self, baseline: QuoteBaseline, now: datetime) -> float:
        factors = (
            time_of_day_factor(now),
            session_factor(now),
            SECTOR_VOLATILITY.get(baseline.sector, 1.0),
            SYMBOL_VOLATILITY.get(baseline.symbol, 1.0),
        )
        return sum(factors) / len(factors)

    def _volume(self, baseline: QuoteBaseline, percent_change: float, now: datetime) -> int:
        volume = base_volume(baseline.market_cap)
        if is_market_open(now):
            volume *= 1.5
        volume *= 1 + percent_change / 100
        volume *= 1 + (self.rng.random() - 0.5) * 0.6
        return int(max(MIN_VOLUME, volume))

    def generate_quote(self, baseline: QuoteBaseline, now: Optional[datetime] = None) -> QuoteRecord:
        now = now or self.clock()
        factor = self.variation_factor(baseline, now)

        price = max(1.0, baseline.base_price + (self.rng.random() - 0.5) * 30 * factor)
        percent_change = max(0.1, baseline.base_change + (self.rng.random() - 0.5) * 2 * factor)

        return QuoteRecord(
            symbol=baseline.symbol,
            display_name=baseline.name,
            price=round(price, 2),
            percent_change=round(percent_change, 2),
            change_amount=round(price * percent_change / 100, 2),
            volume=self._volume(baseline, percent_change, now),
            sector=baseline.sector,
            market_cap=baseline.market_cap,
            last_update=now,
            provenance=Provenance.SYNTHETIC,
            source_name=SYNTHETIC_SOURCE,
        )

    def generate_quotes(self, limit: Optional[int] = None) -> List[QuoteRecord]:
        now = self.clock()
        baselines = QUOTE_BASELINES if limit is None else QUOTE_BASELINES[:limit]
        quotes = [self.generate_quote(b, now) for b in baselines]
        self.logger.info(f"[Synthetic] Generated {len(quotes)} quotes")
        return quotes

    # ========================================================================
    # NEWS
    # ========================================================================

    def generate_news(self, symbol: str) -> List[NewsRecord]:
        now = self.clock()
        articles = []
        for index, (title, description, publisher, hours_ago, sentiment, category, confidence) in enumerate(
            NEWS_TEMPLATES, start=1
        ):
            articles.append(
                NewsRecord(
                    id=f"{SYNTHETIC_SOURCE}_{symbol.lower()}_{index}",
                    title=title.format(symbol=symbol),
                    description=description.format(symbol=symbol),
                    source_name=publisher,
                    published_at=now - timedelta(hours=hours_ago),
                    sentiment=sentiment,
                    category=category,
                    confidence=confidence,
                    provenance=Provenance.SYNTHETIC,
                    adapter=SYNTHETIC_SOURCE,
                )
            )
        self.logger.info(f"[Synthetic] Generated {len(articles)} articles for {symbol}")
        return articles
