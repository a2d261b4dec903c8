# src/marketpulse/adapters/providers/__init__.py
"""
Provider Adapters - External Data Clients

This package contains adapters for the upstream quote and news sources.
"""

from marketpulse.adapters.providers.base import NewsProvider, QuoteProvider
from marketpulse.adapters.providers.news_feed import FeedNewsProvider
from marketpulse.adapters.providers.twelvedata import TwelveDataProvider

__all__ = [
    "QuoteProvider",
    "NewsProvider",
    "TwelveDataProvider",
    "FeedNewsProvider",
]
