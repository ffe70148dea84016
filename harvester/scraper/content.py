# harvester/scraper/content.py
"""
Page content providers.

The extraction pipeline only talks to this interface, so static HTML and a
rendered browser page go through the same code. Lookups return None when the
page has nothing usable instead of raising.
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Union
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup


class PageContentProvider:
    """Capability interface shared by static and rendered pages."""

    mode = "base"

    def __init__(self, url: str):
        self.url = url

    def markup(self) -> str:
        raise NotImplementedError

    def title(self) -> Optional[str]:
        raise NotImplementedError

    def first_text(self, selectors: str) -> Optional[str]:
        """Stripped text of the first element matching selectors, if non-empty."""
        raise NotImplementedError

    def matching_text(self, selectors: str, pattern: Union[str, Pattern]) -> Optional[str]:
        """Stripped text of the first element whose text matches pattern."""
        raise NotImplementedError

    def meta_content(self, prop: str) -> Optional[str]:
        raise NotImplementedError

    def hrefs(self) -> List[str]:
        raise NotImplementedError

    def wait_for_network_idle(self, timeout_ms: int = 5000) -> None:
        return None

    def links(self) -> List[str]:
        """Absolute, fragment-free link targets in document order."""
        out: List[str] = []
        for href in self.hrefs():
            if not href:
                continue
            try:
                absolute = urljoin(self.url, href.strip())
            except ValueError:
                continue
            out.append(urldefrag(absolute)[0])
        return out


class StaticPageContent(PageContentProvider):
    """Provider over raw fetched HTML."""

    mode = "static"

    def __init__(self, url: str, html: str):
        super().__init__(url)
        self.html = html or ""
        self.soup = BeautifulSoup(self.html, "html.parser")

    def markup(self) -> str:
        return self.html

    def title(self) -> Optional[str]:
        if self.soup.title is None:
            return None
        text = self.soup.title.get_text(" ", strip=True)
        return text or None

    def first_text(self, selectors: str) -> Optional[str]:
        for element in self.soup.select(selectors):
            text = element.get_text(" ", strip=True)
            if text:
                return text
        return None

    def matching_text(self, selectors: str, pattern: Union[str, Pattern]) -> Optional[str]:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        for element in self.soup.select(selectors):
            text = element.get_text(" ", strip=True)
            if text and regex.search(text):
                return text
        return None

    def meta_content(self, prop: str) -> Optional[str]:
        tag = self.soup.find("meta", attrs={"property": prop}) or self.soup.find("meta", attrs={"name": prop})
        if tag is None:
            return None
        content = (tag.get("content") or "").strip()
        return content or None

    def hrefs(self) -> List[str]:
        return [a.get("href") for a in self.soup.find_all("a", href=True)]
