# src/market_aggregator/providers/stockanalysis_provider.py
"""
StockAnalysis Gainers Provider
GET https://stockanalysis.com/markets/gainers/  (HTML)

Scrapes the first <tbody>. Columns are located from the <thead> labels when
present; otherwise the row layout is assumed to be symbol, price, % change.
Only rows whose symbol looks like a US ticker (1-5 capitals) are kept.
"""

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from src.market_aggregator.errors import ParseError
from src.market_aggregator.providers.base_provider import BaseQuoteAdapter, parse_compact_number
from src.market_aggregator.schemas.query import GainersQuery
from src.market_aggregator.schemas.records import QuoteRecord


TICKER_PATTERN = re.compile(r"^[A-Z]{1,5}$")

MIN_CELLS = 4

# header label (lower-cased) -> column role
HEADER_ROLES = {
    "symbol": "symbol",
    "company name": "name",
    "company": "name",
    "name": "name",
    "% change": "change",
    "change": "change",
    "stock price": "price",
    "price": "price",
    "volume": "volume",
    "market cap": "market_cap",
}

POSITIONAL_ROLES = {"symbol": 0, "price": 1, "change": 2}


class StockAnalysisGainersAdapter(BaseQuoteAdapter):
    """HTML scraper, last resort among live gainers sources"""

    name = "stockanalysis"
    display_name = "StockAnalysis"

    GAINERS_URL = "https://stockanalysis.com/markets/gainers/"
    HEADERS = {"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"}
    MAX_ROWS = 25

    async def _fetch(self, query: GainersQuery) -> List[QuoteRecord]:
        html = await self._request_text("GET", self.GAINERS_URL, headers=self.HEADERS)
        return self.parse_html(html)

    def parse_html(self, html: str) -> List[QuoteRecord]:
        soup = BeautifulSoup(html, "html.parser")
        tbody = soup.find("tbody")
        if tbody is None:
            raise ParseError(self.name, "No gainers table found in page")

        roles = self._column_roles(soup)

        quotes: List[QuoteRecord] = []
        for row in tbody.find_all("tr"):
            cells = [td.get_text(" ", strip=True) for td in row.find_all("td")]
            if len(cells) < MIN_CELLS:
                continue

            values = {role: cells[idx] for role, idx in roles.items() if idx < len(cells)}
            symbol = values.get("symbol", "")
            if not TICKER_PATTERN.match(symbol) or not values.get("price") or not values.get("change"):
                continue

            quote = self._build_quote(
                symbol=symbol,
                name=values.get("name"),
                price=values["price"],
                percent_change=values["change"],
                volume=parse_compact_number(values.get("volume")),
                market_cap=values.get("market_cap") or None,
            )
            if quote is not None:
                quotes.append(quote)
            if len(quotes) >= self.MAX_ROWS:
                break

        return quotes

    def _column_roles(self, soup: BeautifulSoup) -> Dict[str, int]:
        thead = soup.find("thead")
        if thead is None:
            return dict(POSITIONAL_ROLES)

        roles: Dict[str, int] = {}
        for idx, th in enumerate(thead.find_all("th")):
            role: Optional[str] = HEADER_ROLES.get(th.get_text(" ", strip=True).lower())
            if role and role not in roles:
                roles[role] = idx

        if not {"symbol", "price", "change"} <= roles.keys():
            return dict(POSITIONAL_ROLES)
        return roles
