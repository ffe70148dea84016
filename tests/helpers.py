# tests/helpers.py

import os
from typing import Dict, List, Optional

from harvester.scraper.content import PageContentProvider, StaticPageContent

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def read_fixture(name: str) -> str:
    with open(os.path.join(FIXTURES, name), "r", encoding="utf-8") as f:
        return f.read()


def static_page(url: str, fixture: str = "game_page.html") -> StaticPageContent:
    return StaticPageContent(url, read_fixture(fixture))


class FakeAPIClient:
    """Records calls and returns canned payloads."""

    def __init__(self, place_payload=None, universe_payload=None):
        self.place_payload = place_payload
        self.universe_payload = universe_payload
        self.place_calls: List[str] = []
        self.universe_calls: List = []

    def by_place_id(self, place_id):
        self.place_calls.append(place_id)
        return self.place_payload

    def by_universe_id(self, universe_id):
        self.universe_calls.append(universe_id)
        return self.universe_payload


class FakeRenderedPage(PageContentProvider):
    """Stands in for a Playwright page: selector -> text lookups from a dict."""

    mode = "rendered"

    def __init__(self, url: str, texts: Optional[Dict[str, str]] = None, title: str = "",
                 markup: str = "", hrefs: Optional[List[str]] = None):
        super().__init__(url)
        self.texts = texts or {}
        self._title = title
        self._markup = markup
        self._hrefs = hrefs or []
        self.waited_ms: List[int] = []

    def wait_for_network_idle(self, timeout_ms: int = 5000) -> None:
        self.waited_ms.append(timeout_ms)

    def markup(self) -> str:
        return self._markup

    def title(self):
        return self._title or None

    def first_text(self, selectors):
        for selector in (s.strip() for s in selectors.split(",")):
            if self.texts.get(selector):
                return self.texts[selector]
        return None

    def matching_text(self, selectors, pattern):
        return self.first_text(selectors)

    def meta_content(self, prop):
        return None

    def hrefs(self):
        return list(self._hrefs)
