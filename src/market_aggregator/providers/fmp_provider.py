# src/market_aggregator/providers/fmp_provider.py
"""
FMP Gainers Provider
GET https://financialmodelingprep.com/api/v3/stock_market/gainers?apikey=
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.market_aggregator.providers.base_provider import BaseQuoteAdapter
from src.market_aggregator.schemas.query import GainersQuery
from src.market_aggregator.schemas.records import QuoteRecord


class FMPGainerItem(BaseModel):
    """
    Example response item:
    {
        "symbol": "ABCD",
        "name": "ABCD Holdings Inc.",
        "change": 1.25,
        "price": 9.87,
        "changesPercentage": 14.5
    }
    """
    symbol: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = None
    change: Optional[float] = None
    changes_percentage: Optional[Union[float, str]] = Field(None, alias="changesPercentage")
    volume: Optional[float] = None

    model_config = ConfigDict(populate_by_name=True)


class FMPGainersAdapter(BaseQuoteAdapter):
    """Financial Modeling Prep market gainers"""

    name = "fmp"
    display_name = "FMP"
    credential_setting = "FMP_API_KEY"

    BASE_URL = "https://financialmodelingprep.com/api/v3"

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        data = await self._request_json(
            "GET", f"{self.BASE_URL}/stock_market/gainers", params={"apikey": self.api_key}
        )

        items = self._parse_items(FMPGainerItem, data)
        return self._build_quotes(
            self._build_quote(
                symbol=item.symbol,
                name=item.name,
                price=item.price,
                percent_change=item.changes_percentage,
                change_amount=item.change,
                volume=item.volume,
            )
            for item in items
        )
