"""
Logging System
==============

- Console output, coloured text in development, JSON in production
- Optional daily files under LOG_DIR with an error-only mirror
- Fetch id tracing via contextvars, so concurrent source calls of one
  aggregation share a tag

Usage:
------
```python
from src.core.logging import setup_logging, get_logger, FetchContext

setup_logging()
logger = get_logger(__name__)

async with FetchContext(prefix="news"):
    logger.info("Fetching AAPL")  # includes [news-xxxxxxxx]
```
"""

from src.core.logging.config import setup_logging, get_logger, shutdown_logging
from src.core.logging.context import FetchContext, get_fetch_id, generate_fetch_id

__all__ = [
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "FetchContext",
    "get_fetch_id",
    "generate_fetch_id",
]
