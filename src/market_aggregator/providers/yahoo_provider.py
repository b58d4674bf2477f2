# src/market_aggregator/providers/yahoo_provider.py
"""
Yahoo Finance Gainers Provider
POST https://query1.finance.yahoo.com/v1/finance/screener

Day gainers screener: % change > 1, day volume > 100k, price > $5,
sorted by % change descending. No credential.
"""

from typing import List, Optional

from pydantic import BaseModel

from src.market_aggregator.errors import ParseError
from src.market_aggregator.providers.base_provider import BaseQuoteAdapter, format_market_cap
from src.market_aggregator.schemas.query import GainersQuery
from src.market_aggregator.schemas.records import QuoteRecord


class YahooQuote(BaseModel):
    symbol: Optional[str] = None
    longName: Optional[str] = None
    shortName: Optional[str] = None
    regularMarketPrice: Optional[float] = None
    regularMarketChangePercent: Optional[float] = None
    regularMarketChange: Optional[float] = None
    regularMarketVolume: Optional[float] = None
    marketCap: Optional[float] = None
    sector: Optional[str] = None


class YahooGainersAdapter(BaseQuoteAdapter):
    """Yahoo screener, the most reliable gainers source"""

    name = "yahoo"
    display_name = "Yahoo Finance"

    SCREENER_URL = "https://query1.finance.yahoo.com/v1/finance/screener"
    HEADERS = {
        "Content-Type": "application/json",
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    }
    PAGE_SIZE = 25

    def build_screener_body(self) -> dict:
        return {
            "size": self.PAGE_SIZE,
            "offset": 0,
            "sortField": "percentchange",
            "sortType": "desc",
            "quoteType": "EQUITY",
            "query": {
                "operator": "and",
                "operands": [
                    {"operator": "gt", "operands": ["percentchange", 1.0]},
                    {"operator": "gt", "operands": ["dayvolume", 100000]},
                    {"operator": "gt", "operands": ["intradayprice", 5]},
                ],
            },
        }

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        data = self._require_dict(
            await self._request_json(
                "POST", self.SCREENER_URL, json=self.build_screener_body(), headers=self.HEADERS
            )
        )

        try:
            raw_quotes = data["finance"]["result"][0]["quotes"]
        except (KeyError, IndexError, TypeError) as e:
            raise ParseError(self.name, "Yahoo Finance API returned invalid data") from e

        quotes = self._parse_items(YahooQuote, raw_quotes)
        return self._build_quotes(
            self._build_quote(
                symbol=q.symbol,
                name=q.longName or q.shortName or q.symbol,
                price=q.regularMarketPrice,
                percent_change=q.regularMarketChangePercent,
                change_amount=q.regularMarketChange,
                volume=q.regularMarketVolume,
                sector=q.sector,
                market_cap=format_market_cap(q.marketCap),
            )
            for q in quotes
        )
