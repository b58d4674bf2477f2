# src/market_aggregator/schemas/query.py
"""
Query Schemas
Immutable per-call inputs for the aggregator
"""

import re
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from src.market_aggregator.errors import ValidationError


SYMBOL_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.\-^=]{0,14}$")


class ResourceKind(str, Enum):
    NEWS = "news"
    GAINERS = "gainers"


class FetchMode(str, Enum):
    """How candidate sources are invoked"""
    PARALLEL = "parallel"   # all at once, blend every success
    PRIORITY = "priority"   # one at a time, stop at the first usable result


class _BaseQuery(BaseModel):
    preferred_sources: Optional[Tuple[str, ...]] = Field(
        None, description="Source names in preference order; None = configured defaults"
    )
    allow_synthetic: bool = Field(True, description="Fall back to generated data when every source fails")

    model_config = ConfigDict(frozen=True)

    @field_validator("preferred_sources", mode="before")
    @classmethod
    def normalize_sources(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        names = []
        for name in v:
            name = str(name).strip().lower()
            if name and name not in names:
                names.append(name)
        return tuple(names)

    @classmethod
    def create(cls, **kwargs: Any):
        """Build a query, reporting bad input as ValidationError."""
        try:
            return cls(**kwargs)
        except PydanticValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid {cls.__name__}: {details}") from e

    def _sources_key(self) -> str:
        return ",".join(self.preferred_sources) if self.preferred_sources is not None else "*"


class NewsQuery(_BaseQuery):
    """News articles for one ticker"""

    symbol: str = Field(..., description="Ticker symbol, e.g. AAPL")
    limit: int = Field(20, ge=1, le=100)
    days: int = Field(7, ge=1, le=90, description="Lookback window")
    mode: FetchMode = FetchMode.PARALLEL

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.NEWS

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, v):
        if v is None:
            raise ValueError("symbol is required")
        v = str(v).strip().upper()
        if not v:
            raise ValueError("symbol must not be empty")
        if not SYMBOL_PATTERN.match(v):
            raise ValueError(f"malformed symbol '{v}'")
        return v

    def cache_key(self) -> str:
        return (
            f"news:{self.symbol}:l{self.limit}:d{self.days}:{self._sources_key()}"
            f":{self.mode.value}:s{int(self.allow_synthetic)}"
        )


class GainersQuery(_BaseQuery):
    """Top market gainers"""

    limit: int = Field(15, ge=1, le=100)
    min_percent_change: float = Field(1.0, ge=0.0, description="Drop quotes below this % change")
    mode: FetchMode = FetchMode.PRIORITY

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.GAINERS

    def cache_key(self) -> str:
        return (
            f"gainers:l{self.limit}:m{self.min_percent_change:g}:{self._sources_key()}"
            f":{self.mode.value}:s{int(self.allow_synthetic)}"
        )
