# src/marketpulse/adapters/providers/base.py
"""
Base Provider Interfaces for Quote and News Sources

This module defines the abstract base classes for upstream data providers.
Implementations raise UpstreamUnavailableError on any failure; they never
return placeholder values such as a zero price.

Files that USE this module:
- marketpulse.adapters.providers.twelvedata (TwelveDataProvider implements QuoteProvider)
- marketpulse.adapters.providers.news_feed (FeedNewsProvider implements NewsProvider)
- marketpulse.application.aggregator (depends on the interfaces only)

Files that this module USES:
- marketpulse.domain.models (Quote, Headline)
"""
from abc import ABC, abstractmethod
from typing import List

from marketpulse.domain.models import Headline, Quote


class QuoteProvider(ABC):
    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Return the latest quote for ``symbol`` (price always positive)."""
        raise NotImplementedError


class NewsProvider(ABC):
    @abstractmethod
    def fetch_headlines(self) -> List[Headline]:
        """Return the feed's items in feed order."""
        raise NotImplementedError
