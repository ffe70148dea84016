# harvester/pipeline.py
"""
Per-URL extraction pipeline shared by both fetch modes.

resolve ids -> embedded JSON -> DOM heuristics -> API lookups -> normalize -> persist

The pipeline only sees a PageContentProvider. What differs between static and
rendered crawling is how the page fragment is assembled, which lives in the
StaticMode / RenderedMode strategies.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from . import heuristics
from .api_client import GamesAPIClient
from .embedded import extract_from_markup
from .identifiers import resolve_place_id
from .normalizer import is_empty, normalize_record
from .scraper.content import PageContentProvider
from .sink import ExperienceSink

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class StaticMode:
    """Raw HTML: name from heading/og:title, visits from stat badges."""

    name = "static"
    raw_page_key = "pageJson"

    def page_data(self, provider, page_json, api_data) -> Dict[str, Any]:
        embedded = _as_dict(page_json)
        name = heuristics.static_page_name(provider) or embedded.get("name") or ""
        if api_data:
            visits = _as_dict(api_data).get("visits")
        else:
            visits = heuristics.visits_text(provider)

        data: Dict[str, Any] = {"name": name, "visits": visits}
        playing = heuristics.playing_text(provider)
        if playing:
            data["playing"] = playing
        data.update(embedded)
        return data

    def raw_page(self, page_json, page_data):
        return page_json


class RenderedMode:
    """Live DOM: name from the document title, player count from the badge."""

    name = "rendered"
    raw_page_key = "pageData"

    def page_data(self, provider, page_json, api_data) -> Dict[str, Any]:
        embedded = _as_dict(page_json)
        data: Dict[str, Any] = {
            "name": heuristics.rendered_page_name(provider) or embedded.get("name") or "",
            "playing": heuristics.playing_text(provider),
        }
        data.update(embedded)
        return data

    def raw_page(self, page_json, page_data):
        return page_data


class ExperiencePipeline:
    """Turns one fetched page into one persisted canonical record."""

    def __init__(
        self,
        mode=None,
        api_client: Optional[GamesAPIClient] = None,
        sink: Optional[ExperienceSink] = None,
        use_api: bool = True,
        check_place_details: bool = True,
    ):
        self.mode = mode or StaticMode()
        self.api_client = api_client or GamesAPIClient()
        self.sink = sink
        self.use_api = use_api
        self.check_place_details = check_place_details

    def fetch_api_data(self, place_id: Optional[str], page_json: Optional[Dict[str, Any]]) -> Any:
        """Place-id lookup first; universe lookup only when that yields nothing."""
        if not self.use_api:
            return None

        api_data = None
        if place_id:
            api_data = self.api_client.by_place_id(place_id)

        universe_id = _as_dict(page_json).get("universeId")
        if is_empty(api_data) and self.check_place_details and not is_empty(universe_id):
            logger.debug("Falling back to universe lookup %s", universe_id)
            api_data = self.api_client.by_universe_id(universe_id)

        return None if is_empty(api_data) else api_data

    def process(self, provider: PageContentProvider) -> Dict[str, Any]:
        url = provider.url
        logger.info("Processing (%s) %s", self.mode.name, url)

        provider.wait_for_network_idle()

        place_id = resolve_place_id(url)
        page_json = extract_from_markup(provider.markup())
        api_data = self.fetch_api_data(place_id, page_json)
        page_data = self.mode.page_data(provider, page_json, api_data)

        record = normalize_record(
            api_data=api_data,
            page_data=page_data,
            url=url,
            place_id=place_id,
        )

        if self.sink is not None:
            raw = {
                "url": url,
                "apiData": api_data,
                self.mode.raw_page_key: self.mode.raw_page(page_json, page_data),
            }
            self.sink.persist(record, place_id, raw)

        return record
