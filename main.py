# main.py

import argparse
import logging
import os
import sys
from typing import List, Optional

from harvester.api_client import GamesAPIClient
from harvester.config import CrawlConfig
from harvester.database import Database
from harvester.pipeline import ExperiencePipeline, RenderedMode, StaticMode
from harvester.scraper import Crawler
from harvester.sink import ExperienceSink

DEFAULT_DB_PATH = os.environ.get("HARVESTER_DB_PATH", "data/harvester.db")


def build_config(args: argparse.Namespace) -> CrawlConfig:
    """Input file first, then command-line overrides."""
    config = CrawlConfig.from_file(args.input) if args.input else CrawlConfig()

    if args.urls:
        config.start_urls = list(args.urls)
    if args.experience_id:
        config.experience_ids = list(config.experience_ids) + list(args.experience_id)
    if args.use_browser is not None:
        config.use_browser = args.use_browser
    if args.no_api:
        config.use_api = False
    if args.no_place_details:
        config.check_place_details = False
    if args.allow_external:
        config.follow_internal_only = False
    if args.max_requests is not None:
        config.max_requests_per_crawl = max(1, args.max_requests)
    if args.concurrency is not None:
        config.concurrency = max(1, args.concurrency)
    if args.headed:
        config.headless = False
    return config


def build_crawler(config: CrawlConfig, db: Database) -> Crawler:
    pipeline = ExperiencePipeline(
        mode=RenderedMode() if config.use_browser else StaticMode(),
        api_client=GamesAPIClient(),
        sink=ExperienceSink(db),
        use_api=config.use_api,
        check_place_details=config.check_place_details,
    )
    return Crawler(config, pipeline)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Harvest game experience stats into a canonical dataset")
    parser.add_argument("urls", nargs="*", help="Start URLs (replace startUrls from the input file)")
    parser.add_argument("--input", default="", help="JSON input file (startUrls, experienceIds, useApi, ...)")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help="SQLite DB path for records and raw blobs")
    parser.add_argument("--experience-id", action="append", default=[], help="Experience/place id to crawl (repeatable)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--browser", "--use-browser", dest="use_browser", action="store_true", default=None, help="Render pages with Playwright")
    mode.add_argument("--no-browser", dest="use_browser", action="store_false", help="Parse static HTML only")
    parser.add_argument("--no-api", action="store_true", help="Skip games API lookups")
    parser.add_argument("--no-place-details", action="store_true", help="Skip the universe-id fallback lookup")
    parser.add_argument("--allow-external", action="store_true", help="Follow game links on other hosts")
    parser.add_argument("--max-requests", type=int, default=None, help="Maximum pages to process")
    parser.add_argument("--concurrency", type=int, default=None, help="Parallel static fetches")
    parser.add_argument("--headed", action="store_true", help="Show the browser window in rendered mode")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"ERROR: could not load input: {e}", file=sys.stderr)
        return 2

    db = Database(args.db)
    try:
        before = db.count_records()
        crawler = build_crawler(config, db)
        stats = crawler.run()
        print(f"DB path: {db.db_path}")
        print(
            f"Processed: {stats.processed}  Failed: {stats.failed}  "
            f"Enqueued: {stats.enqueued}  New records: {db.count_records() - before}"
        )
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    finally:
        db.close()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
