# src/market_aggregator/services/deduplication.py
"""
Deduplication Service
Drops records whose dedup key was already seen; first occurrence wins
"""

import logging
from typing import List, Sequence, Set, TypeVar

from src.market_aggregator.schemas.records import NewsRecord, QuoteRecord

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", NewsRecord, QuoteRecord)


class DeduplicationService:
    """
    Key-based deduplication.

    News key:  lower-cased title, first 50 chars, + "_" + publisher name
    Quote key: symbol

    Order of the survivors is the input order, so running it twice is a no-op.
    Must run before the limit is applied.
    """

    def deduplicate(self, items: Sequence[RecordT]) -> List[RecordT]:
        if not items:
            return []

        seen: Set[str] = set()
        unique_items: List[RecordT] = []

        for item in items:
            key = item.dedup_key
            if key in seen:
                continue
            seen.add(key)
            unique_items.append(item)

        dropped = len(items) - len(unique_items)
        if dropped:
            logger.info(f"[Dedup] Input: {len(items)}, Output: {len(unique_items)}, dropped: {dropped}")

        return unique_items
