# src/marketpulse/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Quotes and the cached local-currency rate
- News headlines
- The assembled market report
- Subscribers and per-recipient delivery outcomes

Files that USE this module:
- marketpulse.application.* (cache, aggregator, dispatcher, pipeline)
- marketpulse.adapters.* (providers build Quotes/Headlines, stores build Recipients)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field  # Decorator for creating data classes
from datetime import datetime  # Date/time utilities for timestamps
from decimal import Decimal  # Exact arithmetic for prices
from types import MappingProxyType  # Read-only views for report mappings
from typing import Mapping, Optional, Tuple, Union

RecipientId = Union[int, str]


@dataclass(frozen=True)
class Quote:
    """
    A single instrument price as returned by the quote provider.

    Attributes:
        symbol: Instrument symbol, e.g. "XAU/USD"
        price: Last price (always positive; providers never build a Quote otherwise)
        percent_change: Daily change in percent, when the provider reports it
    """
    symbol: str
    price: Decimal
    percent_change: Optional[Decimal] = None


@dataclass(frozen=True)
class CachedRate:
    """A cached rate value together with the time it was obtained."""
    value: Decimal
    obtained_at: datetime

    def age(self, now: datetime):
        return now - self.obtained_at


@dataclass(frozen=True)
class Headline:
    """One news item: title (possibly translated) and article link."""
    title: str
    link: str


@dataclass(frozen=True)
class Report:
    """
    Market bulletin data, built fresh on every aggregation.

    Attributes:
        generated_at: When the report was assembled (UTC)
        available: False for the degraded "data unavailable" variant
        headlines: Ordered news items
        quotes: Quotes by symbol
        derived_values: Local-currency (VND) value of each convertible quote
        local_rate: Conversion rate used for derived_values, if any
    """
    generated_at: datetime
    available: bool = True
    headlines: Tuple[Headline, ...] = ()
    quotes: Mapping[str, Quote] = field(default_factory=dict)
    derived_values: Mapping[str, Decimal] = field(default_factory=dict)
    local_rate: Optional[Decimal] = None

    def __post_init__(self):
        # Freeze the containers as well as the attributes
        object.__setattr__(self, "headlines", tuple(self.headlines))
        object.__setattr__(self, "quotes", MappingProxyType(dict(self.quotes)))
        object.__setattr__(self, "derived_values", MappingProxyType(dict(self.derived_values)))

    @classmethod
    def unavailable(cls, generated_at: datetime) -> "Report":
        """Degraded report: no quotes, no headlines, no derived values."""
        return cls(generated_at=generated_at, available=False)


@dataclass(frozen=True)
class Recipient:
    """A subscribed chat and the time of its latest registration."""
    id: RecipientId
    registered_at: datetime


@dataclass(frozen=True)
class DispatchResult:
    """
    Outcome of delivering one broadcast to one recipient.

    Attributes:
        recipient: Target recipient
        ok: True if the send succeeded
        reason: Failure description when ok is False
    """
    recipient: Recipient
    ok: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class BroadcastSummary:
    """All per-recipient results of one broadcast plus aggregate counts."""
    results: Tuple[DispatchResult, ...] = ()

    @property
    def successes(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def failed_ids(self) -> Tuple[RecipientId, ...]:
        return tuple(r.recipient.id for r in self.results if not r.ok)

    def __len__(self) -> int:
        return len(self.results)
