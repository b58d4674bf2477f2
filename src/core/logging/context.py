"""
Fetch Context Management
========================

Stamps a short fetch id on every log line emitted while one aggregation runs.
Source adapters run concurrently inside the same asyncio task group, so the id
set by the aggregator propagates to all of them through contextvars.

Usage:
------
```python
from src.core.logging.context import FetchContext

async with FetchContext(prefix="news"):
    logger.info("Fetching")  # -> [news-1a2b3c4d] Fetching
```
"""

import uuid
from contextvars import ContextVar
from typing import Optional

_fetch_id_var: ContextVar[Optional[str]] = ContextVar("fetch_id", default=None)


def get_fetch_id() -> Optional[str]:
    """Get the current fetch ID from context."""
    return _fetch_id_var.get()


def generate_fetch_id(prefix: str = "fetch") -> str:
    """Short id like ``news-a1b2c3d4``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


class FetchContext:
    """
    Context manager scoping a fetch id.

    Resets the previous value on exit, even if the body raises.
    """

    def __init__(self, fetch_id: Optional[str] = None, prefix: str = "fetch"):
        self.fetch_id = fetch_id or generate_fetch_id(prefix)
        self._token = None

    def __enter__(self):
        self._token = _fetch_id_var.set(self.fetch_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _fetch_id_var.reset(self._token)
        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
