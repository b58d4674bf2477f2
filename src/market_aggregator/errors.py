# src/market_aggregator/errors.py
"""
Error taxonomy

ConfigurationError, TransportError (incl. RateLimitExceededError) and ParseError
are raised inside adapters and contained by the aggregator, which records them
in the sources manifest. Only ValidationError reaches the caller.
"""

from typing import Optional


class MarketAggregatorError(Exception):
    """Base class for all aggregator errors"""

    error_type = "error"

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


class ConfigurationError(MarketAggregatorError):
    """Adapter prerequisite unmet (missing or placeholder credential)"""

    error_type = "configuration"

    def __init__(self, source: str, message: str):
        super().__init__(message, source=source)


class TransportError(MarketAggregatorError):
    """Network error, timeout or non-2xx response"""

    error_type = "transport"

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(message, source=source)
        self.status_code = status_code


class RateLimitExceededError(TransportError):
    """Local request budget for a provider is exhausted"""

    error_type = "rate_limit"

    def __init__(self, source: str, limit: int, window: int):
        super().__init__(
            source,
            f"Rate limit exceeded: {limit} requests per {window}s",
            status_code=429,
        )
        self.limit = limit
        self.window = window


class ParseError(MarketAggregatorError):
    """Provider body did not have the expected shape"""

    error_type = "parse"

    def __init__(self, source: str, message: str):
        super().__init__(message, source=source)


class ValidationError(MarketAggregatorError, ValueError):
    """Invalid caller input"""

    error_type = "validation"

    def __init__(self, message: str):
        super().__init__(message)
