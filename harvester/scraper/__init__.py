# harvester/scraper/__init__.py
"""
Page fetching and crawl driving for the experience harvester.

Static pages come from StaticFetcher; rendered pages from
harvester.scraper.browser.BrowserSession (Playwright), loaded on demand.
"""

from .content import PageContentProvider, StaticPageContent
from .static import StaticFetcher, FetchError
from .crawler import Crawler, CrawlRequest, CrawlStats, build_start_requests, discover_links

__all__ = [
    'PageContentProvider',
    'StaticPageContent',
    'StaticFetcher',
    'FetchError',
    'Crawler',
    'CrawlRequest',
    'CrawlStats',
    'build_start_requests',
    'discover_links',
]
