# src/marketpulse/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains the engine: rate cache, report aggregator, broadcast
dispatcher and the pipeline joining them. No direct transport dependencies;
adapters are injected.
"""

from marketpulse.application.aggregator import MarketAggregator
from marketpulse.application.dispatcher import BroadcastDispatcher, SendFunc
from marketpulse.application.pipeline import BroadcastPipeline
from marketpulse.application.rate_cache import RateCache

__all__ = [
    "RateCache",
    "MarketAggregator",
    "BroadcastDispatcher",
    "BroadcastPipeline",
    "SendFunc",
]
