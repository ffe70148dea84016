# harvester/normalizer.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

CANONICAL_FIELDS = (
    "experience_id",
    "place_id",
    "name",
    "creator",
    "visits",
    "favorites",
    "playing",
    "maxPlayers",
    "price",
    "genre",
    "url",
    "raw_api",
    "raw_page",
    "extracted_at",
)

# Output field -> ordered (source, key) lookups. "api.creator" is nested.
FIELD_PRECEDENCE = {
    "experience_id": (("api", "universeId"), ("page", "experienceId")),
    "name": (("api", "name"), ("page", "name")),
    "creator": (("api.creator", "name"), ("api.creator", "creatorType"), ("page", "creator")),
    "visits": (("api", "visits"), ("page", "visits")),
    "favorites": (("api", "favoritedCount"), ("page", "favorites")),
    "playing": (("api", "playing"), ("page", "playing")),
    "maxPlayers": (("api", "maxPlayers"), ("page", "maxPlayers")),
    "price": (("api", "price"), ("page", "price")),
    "genre": (("api", "genre"), ("page", "genre")),
}

DISPLAY_DEFAULTS = {"name": "", "creator": "", "genre": ""}


def is_empty(value: Any) -> bool:
    """None, blank strings and empty containers carry no data; 0 and False do."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def first_present(*values: Any) -> Any:
    for value in values:
        if not is_empty(value):
            return value
    return None


def _fragment(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def normalize_record(
    api_data: Optional[Dict[str, Any]] = None,
    page_data: Optional[Dict[str, Any]] = None,
    url: str = "",
    place_id: Any = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Merge API and page fragments into one canonical record.

    Total over any combination of missing fragments; with both absent the
    record carries only url and extracted_at. raw_api and raw_page keep the
    fragments exactly as given, so an empty object stays an empty object.
    """
    sources = {
        "api": _fragment(api_data),
        "page": _fragment(page_data),
    }
    sources["api.creator"] = _fragment(sources["api"].get("creator"))

    record: Dict[str, Any] = {}
    for field, lookups in FIELD_PRECEDENCE.items():
        value = first_present(*(sources[source].get(key) for source, key in lookups))
        if value is None:
            value = DISPLAY_DEFAULTS.get(field)
        record[field] = value

    record["place_id"] = first_present(
        place_id,
        sources["api"].get("rootPlaceId"),
        sources["api"].get("placeId"),
        sources["page"].get("placeId"),
    )
    record["url"] = url
    record["raw_api"] = api_data
    record["raw_page"] = page_data
    record["extracted_at"] = (now or datetime.now(timezone.utc)).isoformat()

    return {field: record[field] for field in CANONICAL_FIELDS}
