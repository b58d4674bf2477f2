# src/market_aggregator/services/market_clock.py
"""
US equity session helpers.

All checks run in exchange time (America/New_York); regular session is
09:30-16:00, Monday to Friday. Holidays are not modelled.
"""

import math
from datetime import datetime, time, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


MARKET_TZ = ZoneInfo("America/New_York")
MARKET_OPEN = time(9, 30)
MARKET_CLOSE = time(16, 0)

# Maps "now" to an additive sentiment term, roughly in [-0.15, 0.2]
MarketContextFn = Callable[[datetime], float]


def to_market_time(now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(MARKET_TZ)


def is_weekday(now: Optional[datetime] = None) -> bool:
    return to_market_time(now).weekday() < 5


def is_market_open(now: Optional[datetime] = None) -> bool:
    local = to_market_time(now)
    if local.weekday() >= 5:
        return False
    return MARKET_OPEN <= local.time() < MARKET_CLOSE


def default_market_context(now: Optional[datetime] = None) -> float:
    """
    Session bias plus a smooth intraday cycle.

    +0.10 during regular hours, +0.05 on a weekday outside them,
    -0.05 on weekends, plus 0.1 * sin(2pi * hour / 24).
    """
    local = to_market_time(now)
    if is_market_open(local):
        session = 0.1
    elif local.weekday() < 5:
        session = 0.05
    else:
        session = -0.05
    return session + math.sin(local.hour / 24 * 2 * math.pi) * 0.1


def neutral_market_context(now: Optional[datetime] = None) -> float:
    """Context function that contributes nothing; useful for tests and backtests."""
    return 0.0
