# src/marketpulse/adapters/providers/news_feed.py
"""
RSS News Provider - Market Headlines

Downloads an RSS/Atom feed with ``requests`` (so the configured HTTP timeout
applies) and parses it with ``feedparser``. Titles are stripped of any markup
the feed embeds; items without a title or link are skipped.

Files that USE this module:
- marketpulse.app (composition root creates the provider)
- tests.test_providers (unit tests)

Files that this module USES:
- marketpulse.adapters.providers.base (NewsProvider interface)
- marketpulse.config (settings for feed URL and timeout)
"""
import logging
from typing import List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from marketpulse.adapters.providers.base import NewsProvider
from marketpulse.config import settings
from marketpulse.domain.errors import UpstreamUnavailableError
from marketpulse.domain.models import Headline

log = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; MarketPulseBot/1.0)"


def _clean_title(raw: str) -> str:
    """Drop embedded HTML and collapse whitespace."""
    text = BeautifulSoup(raw, "html.parser").get_text(" ")
    return " ".join(text.split())


class FeedNewsProvider(NewsProvider):

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None):
        """
        Args:
            url: Feed URL (defaults to settings.news_feed_url)
            timeout: HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = url or settings.news_feed_url
        self.timeout = timeout or settings.http_timeout_seconds

    def _download(self) -> bytes:
        try:
            log.info("Fetching news feed from %s", self.url)
            resp = requests.get(self.url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
            return resp.content
        except requests.exceptions.Timeout:
            log.warning("News feed timeout after %d seconds for %s", self.timeout, self.url)
            raise UpstreamUnavailableError(f"News feed timeout after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            log.warning("News feed request failed for %s: %s", self.url, e)
            raise UpstreamUnavailableError(f"News feed request failed: {e}") from e

    def fetch_headlines(self) -> List[Headline]:
        """
        Fetch and parse the feed.

        Returns:
            Headlines in feed order

        Raises:
            UpstreamUnavailableError: If the download fails or the document is
                not a parseable feed
        """
        feed = feedparser.parse(self._download())
        if feed.bozo and not feed.entries:
            log.warning("News feed could not be parsed: %s", feed.get("bozo_exception"))
            raise UpstreamUnavailableError(f"News feed unparseable: {feed.get('bozo_exception')}")

        headlines: List[Headline] = []
        for entry in feed.entries:
            title = _clean_title(entry.get("title", ""))
            link = (entry.get("link") or "").strip()
            if not title or not link:
                continue
            headlines.append(Headline(title=title, link=link))

        log.info("News feed returned %d headlines", len(headlines))
        return headlines
