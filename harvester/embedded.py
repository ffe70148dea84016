# harvester/embedded.py
"""
Best-effort extraction of JSON the game pages embed for client-side rendering.

The embedding conventions are not a stable contract, so extraction is an
ordered list of strategies. Each strategy takes one inline script's text and
returns a parsed object or None; a new convention is one more entry in
STRATEGIES.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

GLOBAL_ASSIGNMENT = re.compile(
    r"(Roblox\.PlaceLauncherService|window\.__INITIAL_STATE__|bootstrapData|Roblox\.(?:GameLaunch|Place))"
    r"\s*[:=]\s*(\{[\s\S]{20,}\}\s*;?)",
    re.IGNORECASE,
)
STRUCTURED_DATA_MARKER = '"@type"'

_decoder = json.JSONDecoder()


def _as_object(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def from_global_assignment(script: str) -> Optional[Dict[str, Any]]:
    """Parse the object literal assigned to a known global or bootstrap token."""
    match = GLOBAL_ASSIGNMENT.search(script)
    if not match:
        return None
    literal = match.group(2)

    try:
        return _as_object(json.loads(literal))
    except ValueError:
        pass

    # Statement terminator left inside the capture.
    trimmed = literal.rstrip()
    if trimmed.endswith(";"):
        try:
            return _as_object(json.loads(trimmed[:-1]))
        except ValueError:
            pass

    # More statements after the object: keep the leading object only.
    try:
        obj, _ = _decoder.raw_decode(literal)
        return _as_object(obj)
    except ValueError as exc:
        logger.debug("Embedded %s blob did not parse: %s", match.group(1), exc)
        return None


def from_structured_data(script: str) -> Optional[Dict[str, Any]]:
    """Parse a bare JSON-LD style block ("@type" annotated object)."""
    text = script.strip()
    if not text.startswith("{") or STRUCTURED_DATA_MARKER not in text:
        return None
    try:
        return _as_object(json.loads(text))
    except ValueError as exc:
        logger.debug("Structured data block did not parse: %s", exc)
        return None


STRATEGIES: List[Callable[[str], Optional[Dict[str, Any]]]] = [
    from_global_assignment,
    from_structured_data,
]


def extract_embedded_json(
    scripts: Iterable[Optional[str]],
    strategies: Optional[List[Callable[[str], Optional[Dict[str, Any]]]]] = None,
) -> Optional[Dict[str, Any]]:
    """Return the first embedded object found across scripts in document order."""
    for script in scripts:
        if not script:
            continue
        for strategy in strategies or STRATEGIES:
            try:
                found = strategy(script)
            except Exception as exc:
                logger.debug("Strategy %s failed: %s", getattr(strategy, "__name__", strategy), exc)
                continue
            if found is not None:
                return found
    return None


def script_texts(markup: Optional[str]) -> List[str]:
    """Inline script contents of an HTML document, in document order."""
    if not markup:
        return []
    soup = BeautifulSoup(markup, "html.parser")
    return [script.string or script.get_text() for script in soup.find_all("script")]


def extract_from_markup(markup: Optional[str]) -> Optional[Dict[str, Any]]:
    return extract_embedded_json(script_texts(markup))
