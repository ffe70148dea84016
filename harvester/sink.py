# harvester/sink.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from .database import Database

logger = logging.getLogger(__name__)


def blob_key(place_id: Optional[Any], url: str) -> str:
    """experiences/<placeId>, or experiences/<url-encoded url> without one."""
    if place_id:
        return f"experiences/{place_id}"
    return f"experiences/{quote(url or '', safe='')}"


class ExperienceSink:
    """Persists one record and one raw blob per processed URL.

    Write failures are logged and swallowed so a storage hiccup never costs
    the rest of the crawl.
    """

    def __init__(self, database: Database):
        self.database = database

    def push_record(self, record: Dict[str, Any]) -> bool:
        try:
            self.database.push_record(record)
            return True
        except RuntimeError as exc:
            logger.warning("Failed to push record for %s: %s", record.get("url"), exc)
            return False

    def save_raw(self, place_id: Optional[Any], url: str, raw: Dict[str, Any]) -> bool:
        key = blob_key(place_id, url)
        try:
            self.database.set_value(key, raw, content_type="application/json")
            return True
        except RuntimeError as exc:
            logger.warning("Failed to save raw JSON to store for %s: %s", url, exc)
            return False

    def persist(self, record: Dict[str, Any], place_id: Optional[Any], raw: Dict[str, Any]) -> None:
        self.push_record(record)
        self.save_raw(place_id, record.get("url") or "", raw)
