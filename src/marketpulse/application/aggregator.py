# src/marketpulse/application/aggregator.py
"""
Market Aggregator - Report Assembly

This module builds the ``Report`` behind every bulletin: quotes for the
configured symbols, their VND equivalents through the cached USD/VND rate,
and the first few translated news headlines.

Failure policy:
- anchor quote (gold) missing or non-positive: the whole report degrades to
  ``Report.unavailable`` and nothing else is fetched;
- any other quote failing: that symbol is left out;
- rate refresh failing: a stale rate within the grace window is reused,
  otherwise no VND values are derived;
- news or translation failing: fewer headlines, or untranslated titles.
``produce_report`` always returns a Report and never raises.

Files that USE this module:
- marketpulse.application.pipeline (builds a report per cycle / command)
- marketpulse.app (composition root)
- tests.test_aggregator (unit tests)

Files that this module USES:
- marketpulse.application.rate_cache (RateCache)
- marketpulse.adapters.providers.base (QuoteProvider, NewsProvider)
- marketpulse.adapters.translation (Translator protocol)
- marketpulse.domain.models (Quote, Headline, Report)
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from marketpulse.adapters.providers.base import NewsProvider, QuoteProvider
from marketpulse.adapters.translation import Translator
from marketpulse.application.rate_cache import RateCache
from marketpulse.domain.errors import UpstreamUnavailableError
from marketpulse.domain.models import Headline, Quote, Report

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ("XAU/USD", "EUR/USD", "BTC/USD")


def _base_currency(symbol: str) -> str:
    return symbol.split("/")[0].strip().upper()


def _quote_currency(symbol: str) -> str:
    return symbol.split("/")[-1].strip().upper()


class MarketAggregator:
    """Assembles market reports from injected quote, news and translation capabilities."""

    def __init__(
        self,
        quote_provider: QuoteProvider,
        news_provider: NewsProvider,
        translator: Translator,
        rate_cache: RateCache,
        anchor_symbol: str = "XAU/USD",
        symbols: Iterable[str] = DEFAULT_SYMBOLS,
        local_rate_symbol: str = "USD/VND",
        news_limit: int = 7,
        stale_grace: timedelta = timedelta(0),
    ):
        """
        Args:
            quote_provider: Source of quotes for all symbols and the local rate
            news_provider: Source of headlines
            translator: Best-effort headline translator
            rate_cache: Cache for the local-currency conversion rate
            anchor_symbol: Quote whose absence marks the report unavailable
            symbols: Quotes shown in the report (anchor included or not)
            local_rate_symbol: Conversion pair, e.g. "USD/VND"
            news_limit: Maximum number of headlines
            stale_grace: Extra age beyond the cache TTL a stale rate may have
        """
        self.quote_provider = quote_provider
        self.news_provider = news_provider
        self.translator = translator
        self.rate_cache = rate_cache
        self.anchor_symbol = anchor_symbol
        self.symbols = [s for s in symbols if s != anchor_symbol]
        self.local_rate_symbol = local_rate_symbol
        self.news_limit = news_limit
        self.stale_grace = stale_grace

    def produce_report(self, now: Optional[datetime] = None) -> Report:
        """
        Build a fresh report.

        Args:
            now: Report time (defaults to UTC now); also the cache clock

        Returns:
            A complete report, or the degraded ``Report.unavailable`` variant
            when the anchor quote cannot be obtained
        """
        now = now or datetime.now(timezone.utc)

        anchor = self._fetch_quote(self.anchor_symbol)
        if anchor is None:
            logger.warning("Anchor quote %s unavailable - producing degraded report", self.anchor_symbol)
            return Report.unavailable(now)

        quotes: Dict[str, Quote] = {anchor.symbol: anchor}
        for symbol in self.symbols:
            quote = self._fetch_quote(symbol)
            if quote is not None:
                quotes[symbol] = quote

        local_rate = self._local_rate(now)
        derived = self._derive(quotes, local_rate)
        headlines = self._headlines()

        logger.info(
            "Report assembled: quotes=%s, local_rate=%s, headlines=%d",
            ", ".join(quotes), local_rate, len(headlines),
        )
        return Report(
            generated_at=now,
            available=True,
            headlines=tuple(headlines),
            quotes=quotes,
            derived_values=derived,
            local_rate=local_rate,
        )

    def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        try:
            quote = self.quote_provider.get_quote(symbol)
        except UpstreamUnavailableError as e:
            logger.warning("Quote %s unavailable: %s", symbol, e)
            return None
        except Exception as e:
            logger.error("Unexpected error fetching quote %s: %s", symbol, e, exc_info=True)
            return None
        # Providers should never hand out a non-positive price; treat it as absent
        if quote is None or quote.price is None or quote.price <= 0:
            logger.warning("Quote %s has no positive price, treating as unavailable", symbol)
            return None
        return quote

    def _fetch_rate(self) -> Decimal:
        return self.quote_provider.get_quote(self.local_rate_symbol).price

    def _local_rate(self, now: datetime) -> Optional[Decimal]:
        try:
            return self.rate_cache.get(self._fetch_rate, now=now)
        except UpstreamUnavailableError as e:
            stale = self.rate_cache.peek(now=now, max_age=self.rate_cache.ttl + self.stale_grace)
            if stale is not None:
                logger.warning("%s refresh failed (%s), reusing stale value %s", self.local_rate_symbol, e, stale)
                return stale
            logger.warning("%s unavailable and no usable cached value: %s", self.local_rate_symbol, e)
            return None

    def _derive(self, quotes: Dict[str, Quote], local_rate: Optional[Decimal]) -> Dict[str, Decimal]:
        """Convert every quote priced in the rate's base currency (e.g. .../USD) to local currency."""
        if local_rate is None:
            return {}
        base = _base_currency(self.local_rate_symbol)
        return {
            symbol: quote.price * local_rate
            for symbol, quote in quotes.items()
            if _quote_currency(symbol) == base
        }

    def _headlines(self) -> List[Headline]:
        try:
            items = self.news_provider.fetch_headlines()
        except UpstreamUnavailableError as e:
            logger.warning("News unavailable: %s", e)
            return []
        except Exception as e:
            logger.error("Unexpected error fetching news: %s", e, exc_info=True)
            return []

        headlines = []
        for item in list(items)[: self.news_limit]:
            headlines.append(Headline(title=self._translate(item.title), link=item.link))
        return headlines

    def _translate(self, title: str) -> str:
        try:
            translated = self.translator.translate(title)
        except Exception as e:
            logger.warning("Translation failed, keeping original headline: %s", e)
            return title
        return translated if isinstance(translated, str) and translated.strip() else title
