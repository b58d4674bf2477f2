import re
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.market_aggregator.errors import ConfigurationError, ParseError, TransportError
from src.market_aggregator.schemas.query import GainersQuery, NewsQuery, ResourceKind
from src.market_aggregator.schemas.records import NewsCategory, NewsRecord, Provenance, QuoteRecord
from src.market_aggregator.services.news_classifier import NewsClassifier
from src.market_aggregator.services.sentiment_scorer import score_text
from src.utils.logger.custom_logging import LoggerMixin

if TYPE_CHECKING:
    from src.market_aggregator.context import AggregatorContext


RecordT = TypeVar("RecordT", NewsRecord, QuoteRecord)
PayloadT = TypeVar("PayloadT", bound=BaseModel)

_PLACEHOLDER_PATTERNS = (
    re.compile(r"^your_.*_?key_here$", re.I),
    re.compile(r"placeholder", re.I),
)

_NUMBER_CLEANUP = re.compile(r"[^\d.\-eE]")


def is_placeholder_credential(value: Optional[str]) -> bool:
    """Empty, 'your_<x>_api_key_here', 'your_key_here' or anything with PLACEHOLDER."""
    if value is None or not value.strip():
        return True
    return any(p.search(value.strip()) for p in _PLACEHOLDER_PATTERNS)


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce provider numbers like '3.25%', '+1.2', '$1,234.50' or None."""
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NUMBER_CLEANUP.sub("", str(value))
    if not cleaned or cleaned in ("-", "."):
        return default
    try:
        return float(cleaned)
    except ValueError:
        return default


_COMPACT_SUFFIXES = {"K": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}


def parse_compact_number(value: Any) -> float:
    """'12.5M' -> 12500000.0, '830K' -> 830000.0, plain numbers pass through."""
    text = str(value or "").strip().upper()
    multiplier = _COMPACT_SUFFIXES.get(text[-1:], 1.0) if text else 1.0
    return to_float(text) * multiplier


def format_market_cap(value: Any) -> Optional[str]:
    """1.2e12 -> '1.2T'; None for missing/zero."""
    number = to_float(value)
    if number <= 0:
        return None
    for divisor, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
        if number >= divisor:
            return f"{number / divisor:.1f}{suffix}"
    return f"{number:.0f}"


class BaseSourceAdapter(ABC, LoggerMixin, Generic[RecordT]):
    """
    Abstract base class for source adapters.

    Each adapter must:
    1. Check its own prerequisite (credential) before any network call
    2. Make exactly one outbound request per fetch
    3. Convert the provider payload to normalized records
    4. Raise ConfigurationError / TransportError / ParseError, never return
       provider field names
    """

    # Registry name, e.g. "marketaux"
    name: str = ""
    display_name: str = ""
    kind: ResourceKind = ResourceKind.NEWS

    # Settings attribute holding the credential; None = no credential needed
    credential_setting: Optional[str] = None

    # Reuse the parsed list through the shared cache
    cache_records: bool = False

    def __init__(self, context: "AggregatorContext", api_key: Optional[str] = None):
        self.context = context
        if api_key is None and self.credential_setting:
            api_key = getattr(context.settings, self.credential_setting, "")
        self.api_key = api_key

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"

    # ========================================================================
    # PREREQUISITES
    # ========================================================================

    @property
    def is_configured(self) -> bool:
        if not self.credential_setting:
            return True
        return not is_placeholder_credential(self.api_key)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError(self.name, f"{self.display_name or self.name} API key not configured")

    # ========================================================================
    # FETCH
    # ========================================================================

    def records_cache_key(self, query: Union[NewsQuery, GainersQuery]) -> str:
        return f"adapter:{self.name}:{query.cache_key()}"

    async def fetch(self, query: Union[NewsQuery, GainersQuery]) -> List[RecordT]:
        """Return normalized records for ``query`` or raise an adapter error."""
        self.ensure_configured()

        cache_key = self.records_cache_key(query)
        if self.cache_records:
            cached = self.context.cache.get(cache_key)
            if cached is not None:
                self.logger.info(f"[{self.display_name}] Cache hit ({len(cached)} records)")
                return list(cached)

        await self.context.rate_limiter.acquire(self.name)

        self.logger.info(f"[{self.display_name}] Fetching {query.kind.value}")
        start_time = time.monotonic()
        records = await self._fetch(query)
        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        self.logger.info(f"[{self.display_name}] Fetched {len(records)} records in {elapsed_ms}ms")

        if self.cache_records and records:
            self.context.cache.set(cache_key, list(records))
        return records

    @abstractmethod
    async def _fetch(self, query: Union[NewsQuery, GainersQuery]) -> List[RecordT]:
        """Provider-specific request + parse"""

    # ========================================================================
    # HTTP HELPERS
    # ========================================================================

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = await self.context.get_client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(self.name, f"HTTP {status} from {self.display_name}", status_code=status) from e
        except httpx.TimeoutException as e:
            raise TransportError(self.name, f"Request to {self.display_name} timed out") from e
        except httpx.RequestError as e:
            raise TransportError(self.name, f"Request error: {e.__class__.__name__}: {e}") from e

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        response = await self._send(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(self.name, "Response body is not valid JSON") from e

    async def _request_text(self, method: str, url: str, **kwargs) -> str:
        response = await self._send(method, url, **kwargs)
        return response.text

    # ========================================================================
    # PARSE HELPERS
    # ========================================================================

    def _parse_items(self, model: Type[PayloadT], items: Any) -> List[PayloadT]:
        """
        Validate each raw item against the provider model.

        A non-list is a ParseError; individual malformed items are skipped.
        """
        if not isinstance(items, list):
            raise ParseError(self.name, f"Expected a list of items, got {type(items).__name__}")

        parsed: List[PayloadT] = []
        skipped = 0
        for item in items:
            try:
                parsed.append(model.model_validate(item))
            except PydanticValidationError:
                skipped += 1
        if skipped:
            self.logger.warning(f"[{self.display_name}] Skipped {skipped} malformed items")
        return parsed

    def _require_dict(self, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ParseError(self.name, f"Expected a JSON object, got {type(data).__name__}")
        return data


class BaseNewsAdapter(BaseSourceAdapter[NewsRecord]):
    """News adapters: classification and text-sentiment fallbacks"""

    kind = ResourceKind.NEWS

    # Request size follows query.limit (the aggregator splits the budget)
    limit_driven: bool = True

    classifier = NewsClassifier()

    def _build_record(
        self,
        *,
        title: Optional[str],
        published_at: Optional[datetime],
        description: Optional[str] = None,
        source_name: Optional[str] = None,
        url: Optional[str] = None,
        record_id: Optional[str] = None,
        image_url: Optional[str] = None,
        sentiment: Optional[float] = None,
        score_text_when_missing: bool = True,
        category: Optional[NewsCategory] = None,
        confidence: Optional[float] = None,
        relevance_score: Optional[float] = None,
    ) -> Optional[NewsRecord]:
        """Apply local defaults; None when the item has no headline."""
        if not title or not title.strip():
            return None

        if sentiment is None and score_text_when_missing:
            sentiment = score_text(f"{title} {description or ''}")

        return NewsRecord(
            id=str(record_id) if record_id else None,
            title=title,
            description=description or "",
            source_name=source_name or self.display_name,
            published_at=published_at or datetime.now(timezone.utc),
            url=url or None,
            image_url=image_url or None,
            sentiment=max(-1.0, min(1.0, sentiment)) if sentiment is not None else None,
            category=category or self.classifier.classify(title),
            confidence=max(0.0, min(100.0, confidence or 0.0)),
            relevance_score=max(0.0, min(1.0, relevance_score)) if relevance_score is not None else None,
            provenance=Provenance.LIVE,
            adapter=self.name,
        )

    def _build_records(self, items: Iterable[Optional[NewsRecord]]) -> List[NewsRecord]:
        return [item for item in items if item is not None]


class BaseQuoteAdapter(BaseSourceAdapter[QuoteRecord]):
    """Gainers adapters"""

    kind = ResourceKind.GAINERS
    cache_records = True

    def records_cache_key(self, query: Union[NewsQuery, GainersQuery]) -> str:
        # the raw gainers list does not depend on limit/filter
        return f"adapter:{self.name}:gainers"

    def _build_quote(
        self,
        *,
        symbol: Optional[str],
        name: Optional[str] = None,
        price: Any = None,
        percent_change: Any = None,
        change_amount: Any = None,
        volume: Any = None,
        sector: Optional[str] = None,
        market_cap: Optional[str] = None,
    ) -> Optional[QuoteRecord]:
        if not symbol or not str(symbol).strip():
            return None

        price_value = to_float(price)
        change_pct = to_float(percent_change)
        if change_amount is None:
            amount = price_value * change_pct / 100
        else:
            amount = to_float(change_amount)

        return QuoteRecord(
            symbol=symbol,
            display_name=name or f"{str(symbol).strip().upper()} Corp.",
            price=max(0.0, price_value),
            percent_change=change_pct,
            change_amount=round(amount, 4),
            volume=max(0, int(to_float(volume))),
            sector=sector or None,
            market_cap=market_cap,
            last_update=datetime.now(timezone.utc),
            provenance=Provenance.LIVE,
            source_name=self.name,
        )

    def _build_quotes(self, items: Iterable[Optional[QuoteRecord]]) -> List[QuoteRecord]:
        return [item for item in items if item is not None]
