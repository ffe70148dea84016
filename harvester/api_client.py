from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)


class GamesAPIClient:
    """Best-effort lookups against the public games API.

    Every public method returns None instead of raising; retry policy belongs
    to whoever drives the crawl.
    """

    BASE = "https://games.roblox.com/v1/games"
    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds

    def _get_json(self, url: str) -> Any:
        req = Request(url, headers=self.HEADERS, method="GET")
        if self.timeout_seconds is None:
            resp = urlopen(req)
        else:
            resp = urlopen(req, timeout=self.timeout_seconds)
        with resp:
            return json.loads(resp.read().decode("utf-8"))

    def _fetch(self, url: str) -> Any:
        try:
            return self._get_json(url)
        except HTTPError as exc:
            logger.warning("Games API returned HTTP %s for %s", exc.code, url)
        except URLError as exc:
            logger.warning("Games API unreachable for %s: %s", url, exc.reason)
        except (ValueError, OSError) as exc:
            logger.warning("Games API response unusable for %s: %s", url, exc)
        return None

    @staticmethod
    def unwrap_place_details(payload: Any, place_id: str) -> Any:
        if isinstance(payload, list) and payload:
            return payload[0]
        if isinstance(payload, dict):
            keyed = payload.get(str(place_id))
            if keyed:
                return keyed
        return payload

    @staticmethod
    def unwrap_universe_games(payload: Any) -> Any:
        if isinstance(payload, dict):
            data = payload.get("data")
            if isinstance(data, list) and data:
                return data[0]
        return payload

    def by_place_id(self, place_id: Any) -> Optional[Dict[str, Any]]:
        url = f"{self.BASE}/multiget-place-details?{urlencode({'placeIds': place_id})}"
        payload = self._fetch(url)
        if payload is None:
            return None
        return self.unwrap_place_details(payload, place_id)

    def by_universe_id(self, universe_id: Any) -> Optional[Dict[str, Any]]:
        url = f"{self.BASE}?{urlencode({'universeIds': universe_id})}"
        payload = self._fetch(url)
        if payload is None:
            return None
        return self.unwrap_universe_games(payload)
