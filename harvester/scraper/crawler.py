# harvester/scraper/crawler.py
"""
Crawl driver: seeds, link discovery, request budget and concurrency.

Static mode fans pages out over a thread pool; rendered mode walks them one at
a time through a single browser session. Both hand every fetched page to the
same ExperiencePipeline.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, List, Optional, Set, Tuple
from urllib.parse import urldefrag

from ..config import CrawlConfig
from ..identifiers import experience_id_of, game_url, matches_link_globs, url_host
from .content import PageContentProvider
from .static import FetchError, StaticFetcher

logger = logging.getLogger(__name__)


@dataclass
class CrawlRequest:
    url: str
    start_host: Optional[str] = None


@dataclass
class CrawlStats:
    processed: int = 0
    failed: int = 0
    enqueued: int = 0


def build_start_requests(config: CrawlConfig) -> List[CrawlRequest]:
    """Seed requests from start URLs and experience ids."""
    requests: List[CrawlRequest] = []
    for entry in config.start_urls:
        url = entry.get("url") if isinstance(entry, dict) else entry
        host = url_host(url) if isinstance(url, str) and "://" in url else None
        if not host:
            logger.warning("Skipping invalid start URL: %r", entry)
            continue
        requests.append(CrawlRequest(url=url, start_host=host))

    for entry in config.experience_ids:
        experience_id = experience_id_of(entry)
        if experience_id:
            requests.append(CrawlRequest(url=game_url(experience_id)))
        else:
            logger.warning("Skipping experience entry without an id: %r", entry)
    return requests


def discover_links(
    provider: PageContentProvider,
    request: CrawlRequest,
    follow_internal_only: bool = True,
) -> List[CrawlRequest]:
    """Game/place links on the page, optionally restricted to the seed host."""
    start_host = request.start_host or url_host(request.url)
    found: List[CrawlRequest] = []
    try:
        links = provider.links()
    except Exception as exc:
        logger.debug("Link discovery failed on %s: %s", provider.url, exc)
        return found

    for link in links:
        if not matches_link_globs(link):
            continue
        if follow_internal_only and url_host(link) != start_host:
            continue
        found.append(CrawlRequest(url=link, start_host=request.start_host))
    return found


class Crawler:
    """Runs the pipeline over a frontier of requests."""

    def __init__(
        self,
        config: CrawlConfig,
        pipeline,
        fetcher: Optional[StaticFetcher] = None,
        session_factory: Optional[Callable] = None,
    ):
        self.config = config
        self.pipeline = pipeline
        self.fetcher = fetcher or StaticFetcher()
        self.session_factory = session_factory
        self.stats = CrawlStats()
        self._frontier: Deque[CrawlRequest] = deque()
        self._seen: Set[str] = set()
        self._dispatched = 0

    def enqueue(self, request: CrawlRequest) -> bool:
        key = urldefrag(request.url)[0]
        if key in self._seen:
            return False
        self._seen.add(key)
        self._frontier.append(request)
        self.stats.enqueued += 1
        return True

    def _budget_left(self) -> bool:
        return self._dispatched < self.config.max_requests_per_crawl

    def _next_request(self) -> CrawlRequest:
        self._dispatched += 1
        return self._frontier.popleft()

    def _handle(
        self,
        request: CrawlRequest,
        fetch: Callable[[str], PageContentProvider],
    ) -> Tuple[CrawlRequest, List[CrawlRequest], bool]:
        try:
            provider = fetch(request.url)
        except FetchError as exc:
            logger.warning("Request failed: %s", exc)
            return request, [], False

        try:
            # Links are read after process() has waited for the network to settle.
            self.pipeline.process(provider)
            links = discover_links(provider, request, self.config.follow_internal_only)
        except Exception:
            logger.exception("Processing failed for %s", request.url)
            return request, [], False
        return request, links, True

    def _collect(self, outcome: Tuple[CrawlRequest, List[CrawlRequest], bool]) -> None:
        _, links, ok = outcome
        if ok:
            self.stats.processed += 1
        else:
            self.stats.failed += 1
        for link in links:
            self.enqueue(link)

    def run(self, requests: Optional[Iterable[CrawlRequest]] = None) -> CrawlStats:
        if requests is None:
            requests = build_start_requests(self.config)
        for request in requests:
            self.enqueue(request)

        if self.config.use_browser:
            self._run_rendered()
        else:
            self._run_static()

        logger.info(
            "Crawl finished: %d processed, %d failed, %d enqueued",
            self.stats.processed, self.stats.failed, self.stats.enqueued,
        )
        return self.stats

    def _run_static(self) -> None:
        with ThreadPoolExecutor(max_workers=self.config.concurrency) as pool:
            pending = set()
            while self._frontier or pending:
                while self._frontier and len(pending) < self.config.concurrency and self._budget_left():
                    request = self._next_request()
                    pending.add(pool.submit(self._handle, request, self.fetcher.fetch))
                if not pending:
                    break
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    self._collect(future.result())

    def _run_rendered(self) -> None:
        factory = self.session_factory
        if factory is None:
            from .browser import BrowserSession

            def factory():
                return BrowserSession(headless=self.config.headless)

        with factory() as session:
            while self._frontier and self._budget_left():
                request = self._next_request()
                self._collect(self._handle(request, session.fetch))
