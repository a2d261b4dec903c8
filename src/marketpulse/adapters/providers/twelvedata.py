# src/marketpulse/adapters/providers/twelvedata.py
"""
Twelve Data API Provider for Market Quotes

This module implements the Twelve Data ``/quote`` client used for gold
(XAU/USD), EUR/USD, Bitcoin and the USD/VND conversion rate. Twelve Data
reports most errors, including exhausted API credits, as HTTP 200 with an
error body, so the payload is checked as well as the status code.

Files that USE this module:
- marketpulse.app (composition root creates the provider)
- tests.test_providers (unit tests)

Files that this module USES:
- marketpulse.adapters.providers.base (QuoteProvider interface)
- marketpulse.config (settings for API key, URL and timeout)
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import requests

from marketpulse.adapters.providers.base import QuoteProvider
from marketpulse.config import settings
from marketpulse.domain.errors import RateLimitedError, UpstreamUnavailableError
from marketpulse.domain.models import Quote

log = logging.getLogger(__name__)


def _to_decimal(raw: Any) -> Optional[Decimal]:
    """Parse a numeric field from the API; None for missing or malformed values."""
    if raw is None or raw == "":
        return None
    try:
        value = Decimal(str(raw).replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


class TwelveDataProvider(QuoteProvider):

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize Twelve Data API provider.

        Args:
            api_key: Optional API key (defaults to settings.twelve_data_api_key)
            base_url: Optional endpoint URL (defaults to settings.twelve_data_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.api_key = api_key if api_key is not None else settings.twelve_data_api_key
        self.url = base_url or settings.twelve_data_url
        self.timeout = timeout or settings.http_timeout_seconds
        if not self.api_key:
            log.warning("TWELVE_DATA_API_KEY not configured - every quote fetch will fail")

    def get_quote(self, symbol: str) -> Quote:
        """
        Get the latest quote for a symbol.

        Args:
            symbol: Twelve Data symbol such as "XAU/USD"

        Returns:
            Quote with a positive price and the daily percent change if reported

        Raises:
            RateLimitedError: If the API reports HTTP 429 or exhausted credits
            UpstreamUnavailableError: On network errors, invalid JSON, error
                payloads, or a missing/non-positive price
        """
        if not self.api_key:
            raise UpstreamUnavailableError("Twelve Data API key not configured")

        try:
            log.debug("Fetching %s from Twelve Data", symbol)
            resp = requests.get(
                self.url,
                params={"symbol": symbol, "apikey": self.api_key},
                timeout=self.timeout,
            )
            if resp.status_code == 429:
                raise RateLimitedError(f"Twelve Data rate limit reached while fetching {symbol}")
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout:
            log.warning("Twelve Data timeout after %d seconds for %s", self.timeout, symbol)
            raise UpstreamUnavailableError(f"Twelve Data timeout after {self.timeout}s for {symbol}")
        except requests.exceptions.RequestException as e:
            log.warning("Twelve Data request failed for %s: %s", symbol, e)
            raise UpstreamUnavailableError(f"Twelve Data request failed for {symbol}: {e}") from e
        except ValueError as e:
            log.error("Twelve Data returned invalid JSON for %s: %s", symbol, e)
            raise UpstreamUnavailableError(f"Twelve Data returned invalid JSON for {symbol}") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Twelve Data returned non-dict JSON for {symbol}")

        # Error payload: {"code": 429, "message": "...API credits...", "status": "error"}
        if data.get("status") == "error" or "code" in data:
            message = str(data.get("message", ""))
            if data.get("code") == 429 or "credits" in message.lower():
                log.warning("Twelve Data credits exhausted (%s): %s", symbol, message)
                raise RateLimitedError(f"Twelve Data API limit exceeded: {message}")
            log.warning("Twelve Data error for %s: %s", symbol, message)
            raise UpstreamUnavailableError(f"Twelve Data error for {symbol}: {message}")

        price = _to_decimal(data.get("close", data.get("price")))
        if price is None or price <= 0:
            log.warning("Twelve Data returned unusable price for %s: %r", symbol, data.get("close"))
            raise UpstreamUnavailableError(f"Twelve Data returned no positive price for {symbol}")

        quote = Quote(
            symbol=symbol,
            price=price,
            percent_change=_to_decimal(data.get("percent_change")),
        )
        log.info("Twelve Data %s: price=%s change=%s%%", symbol, quote.price, quote.percent_change)
        return quote
