# src/market_aggregator/providers/stocknews_provider.py
"""
Stock News API Provider
GET https://stocknewsapi.com/api/v1?tickers=&items=&token=

Sentiment arrives as a label; Positive/Negative/Neutral map to 0.5/-0.5/0.
"""

from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from src.market_aggregator.errors import TransportError
from src.market_aggregator.providers.base_provider import BaseNewsAdapter
from src.market_aggregator.schemas.query import NewsQuery
from src.market_aggregator.schemas.records import NewsRecord


STOCKNEWS_CONFIDENCE = 90.0

SENTIMENT_LABELS = {
    "positive": 0.5,
    "negative": -0.5,
    "neutral": 0.0,
}


def normalize_sentiment(value: Any) -> Optional[float]:
    """Label or number -> float; unknown labels give None."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return SENTIMENT_LABELS.get(str(value).strip().lower())


class StockNewsArticle(BaseModel):
    """
    Example item:
    {
        "news_url": "https://...",
        "image_url": "https://...",
        "title": "...",
        "text": "...",
        "source_name": "Zacks Investment Research",
        "date": "Wed, 28 Feb 2024 09:30:00 -0500",
        "topics": ["earnings"],
        "sentiment": "Positive",
        "tickers": ["AAPL"]
    }
    """
    news_url: Optional[str] = None
    image_url: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    source_name: Optional[str] = None
    date: Optional[datetime] = None
    sentiment: Optional[Union[float, str]] = None
    topics: List[str] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        """RFC 2822 ('Wed, 28 Feb 2024 09:30:00 -0500') or ISO. None if unparseable."""
        if v is None or isinstance(v, datetime):
            return v
        if isinstance(v, str):
            try:
                return parsedate_to_datetime(v)
            except (TypeError, ValueError):
                pass
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None


class StockNewsAdapter(BaseNewsAdapter):
    """Stock News API: US markets, labelled sentiment, 100 requests/day"""

    name = "stocknewsapi"
    display_name = "Stock News API"
    credential_setting = "STOCKNEWS_API_KEY"

    BASE_URL = "https://stocknewsapi.com/api/v1"

    async def _fetch(self, query: NewsQuery) -> List[NewsRecord]:
        params = {
            "tickers": query.symbol,
            "items": query.limit,
            "token": self.api_key,
        }
        data = self._require_dict(await self._request_json("GET", self.BASE_URL, params=params))

        if data.get("error"):
            raise TransportError(self.name, f"Stock News API error: {data['error']}")

        articles = self._parse_items(StockNewsArticle, data.get("data", []))
        return self._build_records(self._convert(article) for article in articles)

    def _convert(self, article: StockNewsArticle) -> Optional[NewsRecord]:
        return self._build_record(
            record_id=article.news_url,
            title=article.title,
            description=article.text,
            source_name=article.source_name,
            published_at=article.date,
            url=article.news_url,
            image_url=article.image_url,
            sentiment=normalize_sentiment(article.sentiment),
            score_text_when_missing=False,
            confidence=STOCKNEWS_CONFIDENCE,
        )
