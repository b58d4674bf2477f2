# src/market_aggregator/providers/cnbc_provider.py
"""
CNBC Gainers Provider
GET https://api.cnbc.com/buffett/market-data/gainers?limit=25
"""

from typing import List, Optional

from pydantic import BaseModel

from src.market_aggregator.errors import ParseError
from src.market_aggregator.providers.base_provider import BaseQuoteAdapter
from src.market_aggregator.schemas.query import GainersQuery
from src.market_aggregator.schemas.records import QuoteRecord


class CNBCGainer(BaseModel):
    symbol: Optional[str] = None
    name: Optional[str] = None
    last: Optional[float] = None
    change_pct: Optional[float] = None
    volume: Optional[float] = None


class CNBCGainersAdapter(BaseQuoteAdapter):
    name = "cnbc"
    display_name = "CNBC"

    GAINERS_URL = "https://api.cnbc.com/buffett/market-data/gainers"
    PAGE_SIZE = 25

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        data = self._require_dict(
            await self._request_json("GET", self.GAINERS_URL, params={"limit": self.PAGE_SIZE})
        )
        if not isinstance(data.get("results"), list):
            raise ParseError(self.name, "CNBC response has no results list")

        items = self._parse_items(CNBCGainer, data["results"])
        return self._build_quotes(
            self._build_quote(
                symbol=item.symbol,
                name=item.name,
                price=item.last,
                percent_change=item.change_pct,
                volume=item.volume,
            )
            for item in items
        )
