# src/market_aggregator/providers/marketwatch_provider.py
"""
MarketWatch Gainers Provider
GET https://www.marketwatch.com/tools/screener/gainers  (HTML)

The screener table has no stable header labels, so each row is read left to
right: the first ticker-looking cell, then the first price after it, then
the first percentage after the price.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup

from src.market_aggregator.errors import ParseError
from src.market_aggregator.providers.base_provider import BaseQuoteAdapter
from src.market_aggregator.providers.stockanalysis_provider import TICKER_PATTERN
from src.market_aggregator.schemas.query import GainersQuery
from src.market_aggregator.schemas.records import QuoteRecord


PRICE_PATTERN = re.compile(r"^\$?[\d,]+(?:\.\d+)?$")
PERCENT_PATTERN = re.compile(r"^\+?-?[\d.]+%$")


class MarketWatchGainersAdapter(BaseQuoteAdapter):
    """HTML scraper for the MarketWatch gainers screener"""

    name = "marketwatch"
    display_name = "MarketWatch"

    GAINERS_URL = "https://www.marketwatch.com/tools/screener/gainers"
    HEADERS = {"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"}
    MAX_ROWS = 20

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        html = await self._request_text("GET", self.GAINERS_URL, headers=self.HEADERS)
        return self.parse_html(html)

    def parse_html(self, html: str) -> List[QuoteRecord]:
        soup = BeautifulSoup(html, "html.parser")

        quotes: List[QuoteRecord] = []
        for row in soup.find_all("tr"):
            cells = [td.get_text(" ", strip=True) for td in row.find_all("td")]
            quote = self._parse_row(cells)
            if quote is not None:
                quotes.append(quote)
            if len(quotes) >= self.MAX_ROWS:
                break

        if not quotes:
            raise ParseError(self.name, "No gainers rows found in page")
        return quotes

    def _parse_row(self, cells: List[str]) -> Optional[QuoteRecord]:
        symbol_idx = next((i for i, c in enumerate(cells) if TICKER_PATTERN.match(c)), None)
        if symbol_idx is None:
            return None

        price_idx = next(
            (i for i in range(symbol_idx + 1, len(cells)) if PRICE_PATTERN.match(cells[i])), None
        )
        if price_idx is None:
            return None

        change_idx = next(
            (i for i in range(price_idx + 1, len(cells)) if PERCENT_PATTERN.match(cells[i])), None
        )
        if change_idx is None:
            return None

        # company name sits between the ticker and the price when present
        between = cells[symbol_idx + 1:price_idx]
        return self._build_quote(
            symbol=cells[symbol_idx],
            name=between[0] if between else None,
            price=cells[price_idx],
            percent_change=cells[change_idx],
        )
