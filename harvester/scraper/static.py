# harvester/scraper/static.py
"""
Plain HTTP fetcher for static-mode crawling.
"""

from __future__ import annotations

import logging
import time
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .content import StaticPageContent

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a page could not be fetched."""


class StaticFetcher:
    """Fetch raw HTML with browser-like headers."""

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, timeout_seconds: float = 30, rate_limit_sleep_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds
        self.rate_limit_sleep_seconds = rate_limit_sleep_seconds

    def _get(self, url: str, retry_429: bool = True) -> tuple[str, str]:
        req = Request(url, headers=self.HEADERS, method="GET")
        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                body = resp.read().decode(charset, errors="replace")
                return resp.geturl() or url, body
        except HTTPError as exc:
            if exc.code == 429 and retry_429:
                logger.info("Rate limited on %s, retrying once", url)
                time.sleep(self.rate_limit_sleep_seconds)
                return self._get(url, retry_429=False)
            raise

    def fetch(self, url: str) -> StaticPageContent:
        try:
            loaded_url, html = self._get(url)
        except HTTPError as exc:
            raise FetchError(f"HTTP {exc.code} for {url}") from exc
        except URLError as exc:
            raise FetchError(f"Could not reach {url}: {exc.reason}") from exc
        except (OSError, ValueError) as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        return StaticPageContent(loaded_url, html)
