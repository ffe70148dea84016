# harvester/scraper/browser.py
"""
Rendered-mode page access through Playwright.

One BrowserSession owns a single Chromium page; the sync API is not thread
safe, so rendered crawls are processed one URL at a time.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Pattern, Union

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .content import PageContentProvider
from .static import FetchError

logger = logging.getLogger(__name__)

NETWORK_IDLE_TIMEOUT_MS = 5000


class RenderedPageContent(PageContentProvider):
    """Provider over a live Playwright page."""

    mode = "rendered"

    def __init__(self, page, url: Optional[str] = None):
        super().__init__(url or page.url)
        self.page = page

    def wait_for_network_idle(self, timeout_ms: int = NETWORK_IDLE_TIMEOUT_MS) -> None:
        try:
            self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Network never settled on %s; using current DOM", self.url)

    def markup(self) -> str:
        try:
            return self.page.content()
        except PlaywrightError as exc:
            logger.debug("Could not read markup of %s: %s", self.url, exc)
            return ""

    def title(self) -> Optional[str]:
        try:
            return self.page.title().strip() or None
        except PlaywrightError:
            return None

    def _texts(self, selectors: str) -> List[str]:
        locator = self.page.locator(selectors)
        try:
            if locator.count() == 0:
                return []
            return [text.strip() for text in locator.all_inner_texts()]
        except PlaywrightError as exc:
            logger.debug("Selector %s failed on %s: %s", selectors, self.url, exc)
            return []

    def first_text(self, selectors: str) -> Optional[str]:
        for text in self._texts(selectors):
            if text:
                return text
        return None

    def matching_text(self, selectors: str, pattern: Union[str, Pattern]) -> Optional[str]:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        for text in self._texts(selectors):
            if text and regex.search(text):
                return text
        return None

    def meta_content(self, prop: str) -> Optional[str]:
        locator = self.page.locator(f'meta[property="{prop}"], meta[name="{prop}"]')
        try:
            if locator.count() == 0:
                return None
            content = locator.first.get_attribute("content")
        except PlaywrightError:
            return None
        return (content or "").strip() or None

    def hrefs(self) -> List[str]:
        try:
            return self.page.eval_on_selector_all("a[href]", "els => els.map(e => e.href)")
        except PlaywrightError as exc:
            logger.debug("Could not collect links on %s: %s", self.url, exc)
            return []


class BrowserSession:
    """Headless Chromium with a single reusable page."""

    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    VIEWPORT = {"width": 1280, "height": 720}

    def __init__(self, headless: bool = True, navigation_timeout_ms: int = 30000):
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> None:
        if self.browser:
            return

        self._playwright = sync_playwright().start()
        self.browser = self._playwright.chromium.launch(headless=self.headless)
        self.context = self.browser.new_context(
            user_agent=self.USER_AGENT,
            viewport=self.VIEWPORT,
            locale="en-US",
        )
        self.page = self.context.new_page()

    def close(self) -> None:
        for resource in (self.context, self.browser):
            if resource:
                try:
                    resource.close()
                except PlaywrightError:
                    pass
        if self._playwright:
            try:
                self._playwright.stop()
            except PlaywrightError:
                pass

        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None

    def fetch(self, url: str) -> RenderedPageContent:
        self.open()
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightError as exc:
            raise FetchError(f"Navigation to {url} failed: {exc}") from exc
        return RenderedPageContent(self.page, self.page.url or url)
