# src/market_aggregator/providers/marketaux_provider.py
"""
Marketaux News Provider
GET https://api.marketaux.com/v1/news/all

Entity-level sentiment: the first entity's sentiment_score is the article
sentiment and its match_score the confidence.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.market_aggregator.errors import TransportError
from src.market_aggregator.providers.base_provider import BaseNewsAdapter
from src.market_aggregator.schemas.query import NewsQuery
from src.market_aggregator.schemas.records import NewsRecord


class MarketauxEntity(BaseModel):
    symbol: Optional[str] = None
    sentiment_score: Optional[float] = None
    match_score: Optional[float] = None


class MarketauxArticle(BaseModel):
    """
    Example item:
    {
        "uuid": "5b2b5f0e-...",
        "title": "Apple beats on revenue",
        "description": "...",
        "snippet": "...",
        "source": "reuters.com",
        "published_at": "2024-02-28T14:30:00.000000Z",
        "url": "https://...",
        "image_url": "https://...",
        "entities": [{"symbol": "AAPL", "sentiment_score": 0.42, "match_score": 31.5}]
    }
    """
    uuid: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    snippet: Optional[str] = None
    source: Optional[str] = None
    published_at: Optional[datetime] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    entities: List[MarketauxEntity] = Field(default_factory=list)


class MarketauxNewsAdapter(BaseNewsAdapter):
    """Marketaux: best entity-level sentiment, 100 requests/day"""

    name = "marketaux"
    display_name = "Marketaux"
    credential_setting = "MARKETAUX_API_KEY"

    BASE_URL = "https://api.marketaux.com/v1"

    def __init__(self, context, api_key: Optional[str] = None, language: str = "en"):
        super().__init__(context, api_key=api_key)
        self.language = language

    async def _fetch(self, query: NewsQuery) -> List[NewsRecord]:
        params = {
            "symbols": query.symbol,
            "filter_entities": "true",
            "language": self.language,
            "limit": query.limit,
            "api_token": self.api_key,
        }
        data = self._require_dict(await self._request_json("GET", f"{self.BASE_URL}/news/all", params=params))

        if data.get("error"):
            error = data["error"]
            message = error.get("message", "Unknown error") if isinstance(error, dict) else str(error)
            raise TransportError(self.name, f"Marketaux API error: {message}")

        articles = self._parse_items(MarketauxArticle, data.get("data", []))
        return self._build_records(self._convert(article) for article in articles)

    def _convert(self, article: MarketauxArticle) -> Optional[NewsRecord]:
        entity = article.entities[0] if article.entities else None
        return self._build_record(
            record_id=article.uuid,
            title=article.title,
            description=article.description or article.snippet,
            source_name=article.source,
            published_at=article.published_at,
            url=article.url,
            image_url=article.image_url,
            sentiment=entity.sentiment_score if entity else None,
            confidence=entity.match_score if entity and entity.match_score is not None else 0.0,
        )
