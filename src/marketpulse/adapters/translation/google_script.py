# src/marketpulse/adapters/translation/google_script.py
"""
Headline Translator - Google Apps Script Translate Endpoint

Translates English headlines to Vietnamese through a deployed Apps Script
web app (``?text=...&source=en&target=vi`` returning plain text). The call
is best-effort: network errors, HTTP errors, empty bodies and HTML pages
(the Apps Script login/error page) all return the original text unchanged.
``translate`` never raises.

Files that USE this module:
- marketpulse.app (composition root creates the translator)
- marketpulse.application.aggregator (translates each headline)

Files that this module USES:
- marketpulse.config (settings for endpoint URL and timeout)
"""
import logging
from typing import Optional, Protocol

import requests
from bs4 import BeautifulSoup

from marketpulse.config import settings

log = logging.getLogger(__name__)


class Translator(Protocol):
    """Protocol for best-effort text translation."""
    def translate(self, text: str) -> str:
        ...


def looks_like_markup(body: str) -> bool:
    """True if the response body is an HTML document/fragment rather than text."""
    lowered = body.lower()
    if "<html" in lowered or "<!doctype" in lowered:
        return True
    return BeautifulSoup(body, "html.parser").find() is not None


class PassthroughTranslator:
    """Translator used when no endpoint is configured."""

    def translate(self, text: str) -> str:
        return text


class GoogleScriptTranslator:

    def __init__(
        self,
        url: Optional[str] = None,
        source: str = "en",
        target: str = "vi",
        timeout: Optional[int] = None,
    ):
        """
        Args:
            url: Apps Script web app URL (defaults to settings.google_script_url)
            source: Source language code
            target: Target language code
            timeout: HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = url or settings.google_script_url
        self.source = source
        self.target = target
        self.timeout = timeout or settings.http_timeout_seconds

    def translate(self, text: str) -> str:
        """
        Translate ``text``; return it unchanged on any failure.

        Args:
            text: Text in the source language

        Returns:
            Translated text, or the input when translation is unavailable
        """
        if not self.url or not text or not text.strip():
            return text

        try:
            resp = requests.get(
                self.url,
                params={"text": text, "source": self.source, "target": self.target},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            translated = resp.text.strip()
        except requests.exceptions.RequestException as e:
            log.warning("Translation request failed, keeping original text: %s", e)
            return text

        if not translated:
            log.warning("Translation returned empty body, keeping original text")
            return text
        if looks_like_markup(translated):
            log.warning("Translation returned markup instead of text, keeping original text")
            return text
        return translated
