# harvester/config.py

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

DEFAULT_START_URL = "https://www.roblox.com/games/1818/Adventure-Forward"

# Input keys as they appear in the JSON input file.
INPUT_KEYS = {
    "startUrls": "start_urls",
    "experienceIds": "experience_ids",
    "useApi": "use_api",
    "useBrowser": "use_browser",
    "maxRequestsPerCrawl": "max_requests_per_crawl",
    "followInternalOnly": "follow_internal_only",
    "checkPlaceDetails": "check_place_details",
    "concurrency": "concurrency",
}


@dataclass
class CrawlConfig:
    start_urls: List[Any] = field(default_factory=lambda: [DEFAULT_START_URL])
    experience_ids: List[Any] = field(default_factory=list)
    use_api: bool = True
    use_browser: bool = False
    max_requests_per_crawl: int = 500
    follow_internal_only: bool = True
    check_place_details: bool = True
    concurrency: int = 10
    headless: bool = True

    def __post_init__(self):
        if self.start_urls is None:
            self.start_urls = []
        if self.experience_ids is None:
            self.experience_ids = []
        if int(self.max_requests_per_crawl) < 1:
            raise ValueError("maxRequestsPerCrawl must be at least 1")
        if int(self.concurrency) < 1:
            raise ValueError("concurrency must be at least 1")
        self.max_requests_per_crawl = int(self.max_requests_per_crawl)
        self.concurrency = int(self.concurrency)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlConfig":
        """Build from actor-style input; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = INPUT_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str) -> "CrawlConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Input file {path} must contain a JSON object")
        return cls.from_dict(data)
