# tests/test_providers.py
"""
Provider Tests - Unit Tests for Quote, News and Translation Adapters

This module tests the Twelve Data quote provider, the RSS news provider and
the Google Apps Script translator against mocked HTTP responses.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- marketpulse.adapters.providers (TwelveDataProvider, FeedNewsProvider)
- marketpulse.adapters.translation (GoogleScriptTranslator, looks_like_markup)
- unittest.mock (Mock for API mocking)
"""
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from marketpulse.adapters.providers.news_feed import FeedNewsProvider
from marketpulse.adapters.providers.twelvedata import TwelveDataProvider, _to_decimal
from marketpulse.adapters.translation.google_script import GoogleScriptTranslator, looks_like_markup
from marketpulse.domain.errors import RateLimitedError, UpstreamUnavailableError

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>News</title>
<item><title>Gold  climbs as &lt;b&gt;dollar&lt;/b&gt; slips</title><link>https://example.com/a</link></item>
<item><title></title><link>https://example.com/empty</link></item>
<item><title>Fed holds rates</title><link>https://example.com/b</link></item>
</channel></rss>"""


def _response(json_data=None, status_code=200, text="", content=b""):
    resp = Mock()
    resp.status_code = status_code
    resp.text = text
    resp.content = content
    resp.raise_for_status.return_value = None
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp


class TestToDecimal:
    def test_values(self):
        assert _to_decimal("2034.50") == Decimal("2034.50")
        assert _to_decimal(1.5) == Decimal("1.5")
        assert _to_decimal(None) is None
        assert _to_decimal("") is None
        assert _to_decimal("abc") is None
        assert _to_decimal("NaN") is None


class TestTwelveDataProvider:
    def test_init_uses_settings_defaults(self):
        provider = TwelveDataProvider()
        assert provider.api_key == "test-api-key-123"
        assert "twelvedata.com" in provider.url
        assert provider.timeout == 10

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_get_quote_success(self, mock_get):
        mock_get.return_value = _response(
            {"symbol": "XAU/USD", "close": "2034.50", "percent_change": "0.52"}
        )

        quote = TwelveDataProvider(api_key="key-1234567890").get_quote("XAU/USD")

        assert quote.symbol == "XAU/USD"
        assert quote.price == Decimal("2034.50")
        assert quote.percent_change == Decimal("0.52")
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"symbol": "XAU/USD", "apikey": "key-1234567890"}
        assert kwargs["timeout"] == 10

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_price_field_fallback(self, mock_get):
        mock_get.return_value = _response({"price": "25450"})
        quote = TwelveDataProvider().get_quote("USD/VND")
        assert quote.price == Decimal("25450")
        assert quote.percent_change is None

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_credits_exhausted_payload(self, mock_get):
        mock_get.return_value = _response(
            {"code": 429, "message": "You have run out of API credits for the current minute.", "status": "error"}
        )
        with pytest.raises(RateLimitedError):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_http_429(self, mock_get):
        mock_get.return_value = _response(status_code=429)
        with pytest.raises(RateLimitedError):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_other_error_payload(self, mock_get):
        mock_get.return_value = _response({"code": 400, "message": "symbol not found", "status": "error"})
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            TwelveDataProvider().get_quote("XXX/USD")
        assert not isinstance(exc_info.value, RateLimitedError)

    @pytest.mark.parametrize("close", ["0", "-1", None, "n/a"])
    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_unusable_price(self, mock_get, close):
        mock_get.return_value = _response({"close": close})
        with pytest.raises(UpstreamUnavailableError, match="no positive price"):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")
        with pytest.raises(UpstreamUnavailableError, match="request failed"):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(UpstreamUnavailableError, match="timeout"):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_invalid_json(self, mock_get):
        mock_get.return_value = _response(ValueError("Invalid JSON"))
        with pytest.raises(UpstreamUnavailableError, match="invalid JSON"):
            TwelveDataProvider().get_quote("XAU/USD")

    @patch("marketpulse.adapters.providers.twelvedata.requests.get")
    def test_missing_key_skips_request(self, mock_get):
        provider = TwelveDataProvider(api_key="")
        with pytest.raises(UpstreamUnavailableError, match="not configured"):
            provider.get_quote("XAU/USD")
        mock_get.assert_not_called()


class TestFeedNewsProvider:
    @patch("marketpulse.adapters.providers.news_feed.requests.get")
    def test_fetch_headlines(self, mock_get):
        mock_get.return_value = _response(content=RSS)

        headlines = FeedNewsProvider(url="https://example.com/rss").fetch_headlines()

        assert [h.title for h in headlines] == ["Gold climbs as dollar slips", "Fed holds rates"]
        assert [h.link for h in headlines] == ["https://example.com/a", "https://example.com/b"]

    @patch("marketpulse.adapters.providers.news_feed.requests.get")
    def test_unparseable_feed(self, mock_get):
        mock_get.return_value = _response(content=b"<html><body>Access denied</body>")
        with pytest.raises(UpstreamUnavailableError):
            FeedNewsProvider(url="https://example.com/rss").fetch_headlines()

    @patch("marketpulse.adapters.providers.news_feed.requests.get")
    def test_download_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")
        with pytest.raises(UpstreamUnavailableError):
            FeedNewsProvider(url="https://example.com/rss").fetch_headlines()


class TestGoogleScriptTranslator:
    @patch("marketpulse.adapters.translation.google_script.requests.get")
    def test_translate(self, mock_get):
        mock_get.return_value = _response(text="Vàng tăng giá\n")

        result = GoogleScriptTranslator(url="https://script.example/exec").translate("Gold rises")

        assert result == "Vàng tăng giá"
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"text": "Gold rises", "source": "en", "target": "vi"}

    @patch("marketpulse.adapters.translation.google_script.requests.get")
    def test_html_error_page_keeps_original(self, mock_get):
        mock_get.return_value = _response(text="<!DOCTYPE html><html><body>Error</body></html>")
        assert GoogleScriptTranslator(url="https://script.example/exec").translate("Gold rises") == "Gold rises"

    @patch("marketpulse.adapters.translation.google_script.requests.get")
    def test_request_failure_keeps_original(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        assert GoogleScriptTranslator(url="https://script.example/exec").translate("Gold rises") == "Gold rises"

    @patch("marketpulse.adapters.translation.google_script.requests.get")
    def test_empty_body_keeps_original(self, mock_get):
        mock_get.return_value = _response(text="  ")
        assert GoogleScriptTranslator(url="https://script.example/exec").translate("Gold rises") == "Gold rises"

    @patch("marketpulse.adapters.translation.google_script.requests.get")
    def test_no_url_is_passthrough(self, mock_get):
        assert GoogleScriptTranslator(url="").translate("Gold rises") == "Gold rises"
        mock_get.assert_not_called()

    def test_looks_like_markup(self):
        assert looks_like_markup("<html><body>x</body></html>")
        assert looks_like_markup("<div>Error</div>")
        assert not looks_like_markup("Vàng tăng giá")
        assert not looks_like_markup("S&P 500 > 5000")
