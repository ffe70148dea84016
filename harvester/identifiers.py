# harvester/identifiers.py

from __future__ import annotations

import re
from fnmatch import fnmatch
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

GAME_URL = "https://www.roblox.com/games/{experience_id}"
LINK_GLOBS = ("**/games/**", "**/places/**")

_GAMES_PATH = re.compile(r"/games/(\d+)", re.ASCII)
_PLACES_PATH = re.compile(r"/places/(\d+)", re.ASCII)
_DIGITS = re.compile(r"\d+", re.ASCII)


def resolve_ids(url: Any) -> Dict[str, str]:
    """Return {"placeId": digits} for a game URL, or {} when none is found.

    Precedence: /games/<id> path, then ?id=<digits>, then /places/<id> path.
    """
    if not isinstance(url, str) or not url:
        return {}
    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            return {}

        match = _GAMES_PATH.search(parsed.path)
        if match:
            return {"placeId": match.group(1)}

        query_ids = parse_qs(parsed.query).get("id") or []
        if query_ids and _DIGITS.fullmatch(query_ids[0]):
            return {"placeId": query_ids[0]}

        match = _PLACES_PATH.search(parsed.path)
        if match:
            return {"placeId": match.group(1)}
    except ValueError:
        return {}
    return {}


def resolve_place_id(url: Any) -> Optional[str]:
    return resolve_ids(url).get("placeId")


def experience_id_of(entry: Any) -> Optional[str]:
    """Pull an id out of a raw id or an {id|placeId|experienceId} mapping."""
    if isinstance(entry, dict):
        for key in ("id", "placeId", "experienceId"):
            if entry.get(key):
                entry = entry[key]
                break
        else:
            return None
    if isinstance(entry, bool) or entry is None:
        return None
    value = str(entry).strip()
    return value or None


def game_url(experience_id: Any) -> str:
    return GAME_URL.format(experience_id=experience_id)


def url_host(url: Any) -> Optional[str]:
    if not isinstance(url, str):
        return None
    try:
        host = urlparse(url).netloc
    except ValueError:
        return None
    return host or None


def matches_link_globs(url: str) -> bool:
    """True when the URL looks like a game or place page worth following."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    target = f"{parsed.netloc}{parsed.path}"
    return any(fnmatch(target, glob) for glob in LINK_GLOBS)
