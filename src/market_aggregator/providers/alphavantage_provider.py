# src/market_aggregator/providers/alphavantage_provider.py
"""
Alpha Vantage Providers
GET https://www.alphavantage.co/query

- function=NEWS_SENTIMENT      -> news with overall_sentiment_score
- function=TOP_GAINERS_LOSERS  -> top_gainers list (all values as strings)

Both share one credential and one 25/day budget. Alpha Vantage answers
200 with {"Error Message": ...} or {"Information": ...} (throttled).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from src.market_aggregator.errors import TransportError
from src.market_aggregator.providers.base_provider import (
    BaseNewsAdapter,
    BaseQuoteAdapter,
    BaseSourceAdapter,
    to_float,
)
from src.market_aggregator.schemas.query import GainersQuery, NewsQuery
from src.market_aggregator.schemas.records import NewsRecord, QuoteRecord


BASE_URL = "https://www.alphavantage.co/query"


def parse_alphavantage_time(value: Optional[str]) -> Optional[datetime]:
    """'20240228T143000' -> 2024-02-28 14:30:00 UTC"""
    if not value or len(value) < 15:
        return None
    try:
        return datetime.strptime(value[:15], "%Y%m%dT%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def check_alphavantage_body(adapter: BaseSourceAdapter, data: Any) -> Dict[str, Any]:
    data = adapter._require_dict(data)
    if data.get("Error Message"):
        raise TransportError(adapter.name, f"Alpha Vantage API error: {data['Error Message']}")
    if data.get("Information"):
        raise TransportError(adapter.name, f"Alpha Vantage API rate limit: {data['Information']}", status_code=429)
    if data.get("Note"):
        raise TransportError(adapter.name, f"Alpha Vantage API rate limit: {data['Note']}", status_code=429)
    return data


class AlphaVantageArticle(BaseModel):
    """
    Example feed item:
    {
        "title": "...",
        "url": "https://...",
        "time_published": "20240228T143000",
        "summary": "...",
        "source": "Benzinga",
        "overall_sentiment_score": 0.213,
        "relevance_score": "0.41"
    }
    """
    title: Optional[str] = None
    url: Optional[str] = None
    time_published: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[str] = None
    banner_image: Optional[str] = None
    overall_sentiment_score: Optional[float] = None
    relevance_score: Optional[float] = None

    @field_validator("overall_sentiment_score", "relevance_score", mode="before")
    @classmethod
    def parse_number(cls, v):
        if v is None or v == "":
            return None
        return to_float(v)


class AlphaVantageGainer(BaseModel):
    """
    Example top_gainers item:
    {"ticker": "ABCD", "price": "12.34", "change_amount": "2.1", "change_percentage": "20.5%", "volume": "1234567"}
    """
    ticker: Optional[str] = None
    price: Optional[str] = None
    change_amount: Optional[str] = None
    change_percentage: Optional[str] = None
    volume: Optional[str] = None


class AlphaVantageNewsAdapter(BaseNewsAdapter):
    """Alpha Vantage NEWS_SENTIMENT"""

    name = "alphavantage"
    display_name = "Alpha Vantage"
    credential_setting = "ALPHAVANTAGE_API_KEY"

    async def _fetch(self, query: NewsQuery) -> List[NewsRecord]:
        params = {
            "function": "NEWS_SENTIMENT",
            "tickers": query.symbol,
            "limit": query.limit,
            "apikey": self.api_key,
        }
        data = check_alphavantage_body(self, await self._request_json("GET", BASE_URL, params=params))

        articles = self._parse_items(AlphaVantageArticle, data.get("feed", []))
        return self._build_records(self._convert(article) for article in articles)

    def _convert(self, article: AlphaVantageArticle) -> Optional[NewsRecord]:
        score = article.overall_sentiment_score or 0.0
        return self._build_record(
            record_id=article.url,
            title=article.title,
            description=article.summary,
            source_name=article.source,
            published_at=parse_alphavantage_time(article.time_published),
            url=article.url,
            image_url=article.banner_image,
            sentiment=score,
            confidence=abs(score) * 100,
            relevance_score=article.relevance_score,
        )


class AlphaVantageGainersAdapter(BaseQuoteAdapter):
    """Alpha Vantage TOP_GAINERS_LOSERS"""

    name = "alphavantage"
    display_name = "Alpha Vantage"
    credential_setting = "ALPHAVANTAGE_API_KEY"

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        params = {"function": "TOP_GAINERS_LOSERS", "apikey": self.api_key}
        data = check_alphavantage_body(self, await self._request_json("GET", BASE_URL, params=params))

        gainers = self._parse_items(AlphaVantageGainer, data.get("top_gainers", []))
        return self._build_quotes(
            self._build_quote(
                symbol=item.ticker,
                price=item.price,
                percent_change=item.change_percentage,
                change_amount=item.change_amount,
                volume=item.volume,
            )
            for item in gainers
        )
