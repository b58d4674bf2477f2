# src/market_aggregator/providers/finnhub_provider.py
"""
Finnhub News Provider
GET https://finnhub.io/api/v1/company-news?symbol=&from=&to=&token=

Returns a bare JSON array; sentiment comes from the text scorer.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel

from src.market_aggregator.providers.base_provider import BaseNewsAdapter
from src.market_aggregator.schemas.query import NewsQuery
from src.market_aggregator.schemas.records import NewsRecord


FINNHUB_CONFIDENCE = 85.0


class FinnhubArticle(BaseModel):
    """
    Example item:
    {
        "id": 7371,
        "headline": "Apple unveils ...",
        "summary": "...",
        "source": "Reuters",
        "datetime": 1709130600,
        "url": "https://...",
        "image": "https://..."
    }
    """
    id: Optional[int] = None
    headline: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[str] = None
    datetime: Optional[int] = None
    url: Optional[str] = None
    image: Optional[str] = None


class FinnhubNewsAdapter(BaseNewsAdapter):
    """Finnhub company news over a lookback window, 60 requests/minute"""

    name = "finnhub"
    display_name = "Finnhub"
    credential_setting = "FINNHUB_API_KEY"

    # size is set by the date window, not by query.limit
    limit_driven = False

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        context,
        api_key: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        super().__init__(context, api_key=api_key)
        self.clock = clock

    async def _fetch(self, query: NewsQuery) -> List[NewsRecord]:
        today = self.clock()
        params = {
            "symbol": query.symbol,
            "from": (today - timedelta(days=query.days)).strftime("%Y-%m-%d"),
            "to": today.strftime("%Y-%m-%d"),
            "token": self.api_key,
        }
        data = await self._request_json("GET", f"{self.BASE_URL}/company-news", params=params)

        articles = self._parse_items(FinnhubArticle, data)
        return self._build_records(
            self._convert(article, index) for index, article in enumerate(articles)
        )

    def _convert(self, article: FinnhubArticle, index: int) -> Optional[NewsRecord]:
        published_at = None
        if article.datetime:
            published_at = datetime.fromtimestamp(article.datetime, tz=timezone.utc)

        return self._build_record(
            record_id=f"{self.name}_{article.id if article.id is not None else index}",
            title=article.headline,
            description=article.summary,
            source_name=article.source,
            published_at=published_at,
            url=article.url,
            image_url=article.image,
            confidence=FINNHUB_CONFIDENCE,
        )
