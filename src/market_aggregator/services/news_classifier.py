# src/market_aggregator/services/news_classifier.py
"""
News Classifier
Maps a headline to a NewsCategory by keyword patterns, first match wins
"""

import re
from typing import List, Optional, Pattern, Tuple

from src.market_aggregator.schemas.records import NewsCategory


class NewsClassifier:
    """
    Keyword-based headline categorizer.

    Patterns are unanchored and case-insensitive, so "Q3" and "quarterly"
    both count as earnings news. Order matters: earnings beats market for
    "Stock jumps after earnings".
    """

    CATEGORY_PATTERNS: List[Tuple[NewsCategory, Pattern]] = [
        (NewsCategory.EARNINGS, re.compile(r"earnings|revenue|profit|quarter|q[1-4]|fiscal", re.I)),
        (NewsCategory.ANALYST, re.compile(r"analyst|upgrade|downgrade|target|rating|recommendation", re.I)),
        (NewsCategory.PARTNERSHIP, re.compile(r"merger|acquisition|partnership|deal|joint venture", re.I)),
        (NewsCategory.REGULATORY, re.compile(r"regulatory|sec|investigation|lawsuit|compliance|fine", re.I)),
        (NewsCategory.MARKET, re.compile(r"market|trading|volatility|stock|shares|price", re.I)),
        (NewsCategory.PRODUCT, re.compile(r"product|launch|innovation|technology|patent", re.I)),
        (NewsCategory.MANAGEMENT, re.compile(r"management|ceo|executive|leadership|appointment", re.I)),
    ]

    DEFAULT_CATEGORY = NewsCategory.CORPORATE

    def classify(self, title: Optional[str]) -> NewsCategory:
        if not title:
            return self.DEFAULT_CATEGORY

        for category, pattern in self.CATEGORY_PATTERNS:
            if pattern.search(title):
                return category
        return self.DEFAULT_CATEGORY
