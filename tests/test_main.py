import json

import main
from harvester.scraper import CrawlStats


class StubCrawler:
    def __init__(self, config):
        self.config = config

    def run(self):
        return CrawlStats(processed=1, failed=0, enqueued=1)


def test_cli_flags_override_input_file(tmp_path, monkeypatch, capsys):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({
        "startUrls": ["https://www.roblox.com/games/1"],
        "experienceIds": ["5"],
        "maxRequestsPerCrawl": 50,
    }), encoding="utf-8")
    built = []

    def fake_build_crawler(config, db):
        built.append(config)
        return StubCrawler(config)

    monkeypatch.setattr(main, "build_crawler", fake_build_crawler)

    code = main.main([
        "https://www.roblox.com/games/2",
        "--input", str(input_path),
        "--db", str(tmp_path / "out.db"),
        "--experience-id", "6",
        "--no-api",
        "--allow-external",
        "--max-requests", "3",
        "--browser",
        "--headed",
    ])

    assert code == 0
    config = built[0]
    assert config.start_urls == ["https://www.roblox.com/games/2"]
    assert config.experience_ids == ["5", "6"]
    assert config.use_api is False
    assert config.follow_internal_only is False
    assert config.max_requests_per_crawl == 3
    assert config.use_browser is True
    assert config.headless is False
    assert "Processed: 1" in capsys.readouterr().out


def test_bad_input_file_exits_with_2(tmp_path, capsys):
    input_path = tmp_path / "input.json"
    input_path.write_text("not json", encoding="utf-8")
    code = main.main(["--input", str(input_path), "--db", str(tmp_path / "out.db")])
    assert code == 2
    assert "could not load input" in capsys.readouterr().err


def test_build_crawler_picks_mode_from_config(tmp_path):
    from harvester.config import CrawlConfig
    from harvester.database import Database

    db = Database(str(tmp_path / "out.db"))
    try:
        static = main.build_crawler(CrawlConfig(use_api=False), db)
        rendered = main.build_crawler(CrawlConfig(use_browser=True, check_place_details=False), db)
        assert static.pipeline.mode.name == "static"
        assert static.pipeline.use_api is False
        assert rendered.pipeline.mode.name == "rendered"
        assert rendered.pipeline.check_place_details is False
    finally:
        db.close()


def test_use_browser_alias(tmp_path, monkeypatch):
    built = []
    monkeypatch.setattr(main, "build_crawler", lambda config, db: built.append(config) or StubCrawler(config))

    assert main.main(["--use-browser", "--db", str(tmp_path / "out.db")]) == 0
    assert built[0].use_browser is True
