# src/market_aggregator/providers/registry.py
"""
Closed adapter families. Order here is the default priority order.
"""

from typing import TYPE_CHECKING, Dict, List, Type

from src.market_aggregator.providers.alphavantage_provider import (
    AlphaVantageGainersAdapter,
    AlphaVantageNewsAdapter,
)
from src.market_aggregator.providers.base_provider import BaseNewsAdapter, BaseQuoteAdapter
from src.market_aggregator.providers.cnbc_provider import CNBCGainersAdapter
from src.market_aggregator.providers.finnhub_provider import FinnhubNewsAdapter
from src.market_aggregator.providers.fmp_provider import FMPGainersAdapter
from src.market_aggregator.providers.marketaux_provider import MarketauxNewsAdapter
from src.market_aggregator.providers.marketwatch_provider import MarketWatchGainersAdapter
from src.market_aggregator.providers.stockanalysis_provider import StockAnalysisGainersAdapter
from src.market_aggregator.providers.stocknews_provider import StockNewsAdapter
from src.market_aggregator.providers.yahoo_provider import YahooGainersAdapter

if TYPE_CHECKING:
    from src.market_aggregator.context import AggregatorContext


NEWS_ADAPTERS: List[Type[BaseNewsAdapter]] = [
    MarketauxNewsAdapter,
    FinnhubNewsAdapter,
    StockNewsAdapter,
    AlphaVantageNewsAdapter,
]

QUOTE_ADAPTERS: List[Type[BaseQuoteAdapter]] = [
    YahooGainersAdapter,
    MarketWatchGainersAdapter,
    FMPGainersAdapter,
    CNBCGainersAdapter,
    AlphaVantageGainersAdapter,
    StockAnalysisGainersAdapter,
]


def build_news_adapters(context: "AggregatorContext") -> Dict[str, BaseNewsAdapter]:
    return {cls.name: cls(context) for cls in NEWS_ADAPTERS}


def build_quote_adapters(context: "AggregatorContext") -> Dict[str, BaseQuoteAdapter]:
    return {cls.name: cls(context) for cls in QUOTE_ADAPTERS}
