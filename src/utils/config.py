import os
from pathlib import Path
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv


dotenv_path = Path(__file__).resolve().parents[2] / '.env'
load_dotenv(dotenv_path)


class Settings(BaseSettings):
    """Global configurations."""

    ENV_STATE: str = Field('dev', env='ENV_STATE')

    # Logging
    LOG_LEVEL: str = Field('INFO', env='LOG_LEVEL')
    LOG_FORMAT: str = Field('text', env='LOG_FORMAT')
    LOG_DIR: str = Field('', env='LOG_DIR')

    # Provider credentials (empty or placeholder = provider not configured)
    MARKETAUX_API_KEY: str = os.getenv("MARKETAUX_API_KEY", "")
    FINNHUB_API_KEY: str = os.getenv("FINNHUB_API_KEY", "")
    STOCKNEWS_API_KEY: str = os.getenv("STOCKNEWS_API_KEY", "")
    ALPHAVANTAGE_API_KEY: str = os.getenv("ALPHAVANTAGE_API_KEY", "")
    FMP_API_KEY: str = os.getenv("FMP_API_KEY", "")

    # Per-adapter request timeout, seconds
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", 10.0))

    # TTL (Time-To-Live) for cache, calculate seconds
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", 60 * 5))
    CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", 50))
    CACHE_SYNTHETIC_RESULTS: bool = Field(False, env='CACHE_SYNTHETIC_RESULTS')

    # Comma separated source names, in preference order
    NEWS_DEFAULT_SOURCES: str = Field('marketaux,finnhub,stocknewsapi', env='NEWS_DEFAULT_SOURCES')
    GAINERS_DEFAULT_SOURCES: str = Field(
        'yahoo,marketwatch,fmp,cnbc,alphavantage,stockanalysis', env='GAINERS_DEFAULT_SOURCES'
    )

    # Weight of the market-session term in metric-based sentiment
    SENTIMENT_CONTEXT_WEIGHT: float = Field(0.2, env='SENTIMENT_CONTEXT_WEIGHT')

    @property
    def news_default_sources(self) -> List[str]:
        return _split_sources(self.NEWS_DEFAULT_SOURCES)

    @property
    def gainers_default_sources(self) -> List[str]:
        return _split_sources(self.GAINERS_DEFAULT_SOURCES)


def _split_sources(raw: str) -> List[str]:
    return [s.strip().lower() for s in raw.split(",") if s.strip()]


# Avoid having to re-read the .env file and create the Settings object every time you access it
@lru_cache()
def get_settings():
    return Settings()


# Settings will be the object that contains all the configuration of the application.
settings = get_settings()
