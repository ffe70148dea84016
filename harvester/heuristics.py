# harvester/heuristics.py
"""
Selector heuristics for values the page shows but does not embed as data.

These are fragile by nature. Each one returns a string or None and never
raises, so a layout change costs a field, not the page.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from .scraper.content import PageContentProvider

logger = logging.getLogger(__name__)

STAT_BADGE_SELECTORS = "span.stat-value, .count, .text-lead, .text-robux, .stats .value"
PLAYER_COUNT_SELECTORS = '[data-testid="game-players-count"], .playing-count, .text-lead'

_HAS_DIGIT = re.compile(r"\d")


def digits_only(text: Optional[str]) -> Optional[str]:
    """'1,234 playing' -> '1234'; None when no digits remain."""
    if not text:
        return None
    digits = re.sub(r"[^0-9]", "", text)
    return digits or None


def _safely(lookup: Callable[[], Optional[str]], label: str, url: str) -> Optional[str]:
    try:
        return lookup()
    except Exception as exc:
        logger.debug("%s heuristic failed on %s: %s", label, url, exc)
        return None


def static_page_name(provider: PageContentProvider) -> Optional[str]:
    return _safely(
        lambda: provider.first_text("h1") or provider.meta_content("og:title"),
        "name",
        provider.url,
    )


def rendered_page_name(provider: PageContentProvider) -> Optional[str]:
    return _safely(
        lambda: provider.title() or provider.first_text("h1"),
        "name",
        provider.url,
    )


def visits_text(provider: PageContentProvider) -> Optional[str]:
    """First numeric-looking stat badge, digits only."""
    text = _safely(
        lambda: provider.matching_text(STAT_BADGE_SELECTORS, _HAS_DIGIT),
        "visits",
        provider.url,
    )
    return digits_only(text)


def playing_text(provider: PageContentProvider) -> Optional[str]:
    """First non-empty player-count candidate, digits only."""
    text = _safely(
        lambda: provider.first_text(PLAYER_COUNT_SELECTORS),
        "playing",
        provider.url,
    )
    return digits_only(text)
