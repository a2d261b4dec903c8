# src/marketpulse/application/rate_cache.py
"""
Rate Cache - TTL Memoization of the Local-currency Conversion Rate

The USD/VND rate changes slowly and every upstream call costs API credits,
so the aggregator reads it through this cache. One instance caches one
value; value and timestamp live in a single immutable ``CachedRate`` that is
replaced as a whole.

Refresh policy: a ``threading.Lock`` serializes refreshes. Callers that
find the entry expired while another thread is refreshing block on the lock
and, once it is released, see the freshly stored value instead of fetching
again. At most one upstream fetch is in flight per cache instance.

Files that USE this module:
- marketpulse.application.aggregator (local rate for derived values)
- marketpulse.app (composition root creates the cache)

Files that this module USES:
- marketpulse.domain.models (CachedRate)
- marketpulse.domain.errors (UpstreamUnavailableError)
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from marketpulse.domain.errors import UpstreamUnavailableError
from marketpulse.domain.models import CachedRate

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=6)


class RateCache:
    """Single-value TTL cache with serialized refreshes."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, name: str = "rate"):
        """
        Args:
            ttl: Maximum age of a cached value before it must be refreshed
            name: Label used in log messages
        """
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.name = name
        self._entry: Optional[CachedRate] = None
        self._lock = threading.Lock()

    @property
    def entry(self) -> Optional[CachedRate]:
        """Current cached entry (possibly stale), or None."""
        return self._entry

    def _is_fresh(self, entry: Optional[CachedRate], now: datetime) -> bool:
        return entry is not None and entry.value > 0 and entry.age(now) < self.ttl

    def get(self, fetch: Callable[[], Decimal], now: Optional[datetime] = None) -> Decimal:
        """
        Return the cached value, refreshing it through ``fetch`` when expired.

        Args:
            fetch: Zero-argument callable returning a fresh rate
            now: Current time (defaults to UTC now)

        Returns:
            Fresh cached value or the newly fetched one

        Raises:
            UpstreamUnavailableError: If the refresh fails or returns a
                non-positive value. The previous entry is kept unchanged.
        """
        now = now or datetime.now(timezone.utc)

        entry = self._entry
        if self._is_fresh(entry, now):
            logger.debug("Using cached %s: %s", self.name, entry.value)
            return entry.value

        with self._lock:
            # Another caller may have refreshed while we waited for the lock
            entry = self._entry
            if self._is_fresh(entry, now):
                return entry.value

            logger.info("Refreshing cached %s (ttl=%s)", self.name, self.ttl)
            try:
                value = fetch()
                if not isinstance(value, Decimal):
                    value = Decimal(str(value))
            except UpstreamUnavailableError:
                logger.warning("Refresh of %s failed, keeping previous entry", self.name)
                raise
            except Exception as e:
                logger.warning("Refresh of %s failed, keeping previous entry: %s", self.name, e)
                raise UpstreamUnavailableError(f"{self.name} refresh failed: {e}") from e

            if not value.is_finite() or value <= 0:
                logger.warning("Refresh of %s returned non-positive value %s", self.name, value)
                raise UpstreamUnavailableError(f"{self.name} refresh returned non-positive value: {value}")

            self._entry = CachedRate(value=value, obtained_at=now)
            logger.info("Cached %s updated: %s", self.name, value)
            return value

    def peek(self, now: Optional[datetime] = None, max_age: Optional[timedelta] = None) -> Optional[Decimal]:
        """
        Read the cached value without refreshing.

        Args:
            now: Current time (defaults to UTC now)
            max_age: Oldest acceptable entry; None accepts any age

        Returns:
            The cached value if present, positive and not older than max_age
        """
        now = now or datetime.now(timezone.utc)
        entry = self._entry
        if entry is None or entry.value <= 0:
            return None
        if max_age is not None and entry.age(now) >= max_age:
            return None
        return entry.value

    def clear(self) -> None:
        with self._lock:
            self._entry = None
