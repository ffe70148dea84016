# tests/test_database.py

import os
import shutil
import tempfile
import threading
import unittest

from harvester.database import Database
from harvester.sink import ExperienceSink, blob_key


def _record(url, place_id=None, **extra):
    record = {
        "experience_id": None,
        "place_id": place_id,
        "name": "",
        "creator": "",
        "visits": None,
        "favorites": None,
        "playing": None,
        "maxPlayers": None,
        "price": None,
        "genre": "",
        "url": url,
        "raw_api": None,
        "raw_page": None,
        "extracted_at": "2026-01-02T03:04:05+00:00",
    }
    record.update(extra)
    return record


class TestDatabase(unittest.TestCase):
    """Record dataset and key-value store."""

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.db = Database(os.path.join(self.tmp_dir, "harvester.db"))

    def tearDown(self):
        self.db.close()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_records_are_appended_not_deduplicated(self):
        url = "https://www.roblox.com/games/1818"
        self.db.push_record(_record(url, "1818", name="first"))
        self.db.push_record(_record(url + "/Adventure-Forward", "1818", name="second"))

        rows = self.db.get_records()
        self.assertEqual([r["name"] for r in rows], ["first", "second"])
        self.assertEqual(len(self.db.get_records(place_id="1818")), 2)
        self.assertEqual(self.db.count_records(), 2)

    def test_record_round_trips_nested_payloads(self):
        record = _record("u", 1818, raw_api={"creator": {"name": "x"}}, visits=10)
        self.db.push_record(record)
        self.assertEqual(self.db.get_records(place_id=1818), [record])

    def test_set_value_last_write_wins(self):
        self.db.set_value("experiences/1818", {"url": "a"})
        self.db.set_value("experiences/1818", {"url": "b"})
        self.assertEqual(self.db.get_value("experiences/1818"), {"url": "b"})
        self.assertEqual(self.db.list_keys(), ["experiences/1818"])

    def test_get_missing_value(self):
        self.assertIsNone(self.db.get_value("experiences/none"))

    def test_list_keys_prefix_treats_wildcards_literally(self):
        self.db.set_value("experiences/1", {})
        self.db.set_value("experiencesX1", {})
        self.db.set_value("other/1", {})
        self.assertEqual(self.db.list_keys("experiences/"), ["experiences/1"])
        self.assertEqual(self.db.list_keys("experiences_"), [])

    def test_concurrent_writes(self):
        def worker(n):
            for i in range(10):
                self.db.push_record(_record(f"https://x/games/{n}{i}", f"{n}{i}"))
                self.db.set_value(f"experiences/{n}{i}", {"n": n, "i": i})

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(self.db.count_records(), 40)
        self.assertEqual(len(self.db.list_keys("experiences/")), 40)

    def test_database_persists_across_connections(self):
        path = self.db.db_path
        self.db.push_record(_record("u", "1"))
        self.db.close()
        self.db = Database(path)
        self.assertEqual(self.db.count_records(), 1)


class TestSink(unittest.TestCase):

    def setUp(self):
        self.db = Database(":memory:")
        self.sink = ExperienceSink(self.db)

    def tearDown(self):
        self.db.close()

    def test_blob_key_prefers_place_id(self):
        self.assertEqual(blob_key("1818", "https://www.roblox.com/games/1818"), "experiences/1818")

    def test_blob_key_url_encodes_without_place_id(self):
        self.assertEqual(
            blob_key(None, "https://www.roblox.com/discover?x=1"),
            "experiences/https%3A%2F%2Fwww.roblox.com%2Fdiscover%3Fx%3D1",
        )

    def test_persist_writes_record_and_blob(self):
        record = _record("https://www.roblox.com/games/1818", "1818")
        self.sink.persist(record, "1818", {"url": record["url"], "apiData": None, "pageJson": None})
        self.assertEqual(self.db.count_records(), 1)
        self.assertEqual(self.db.get_value("experiences/1818")["url"], record["url"])

    def test_write_failures_are_swallowed(self):
        self.db.close()
        record = _record("https://www.roblox.com/games/1818", "1818")
        with self.assertLogs("harvester.sink", level="WARNING") as logs:
            self.assertFalse(self.sink.push_record(record))
            self.assertFalse(self.sink.save_raw("1818", record["url"], {}))
            self.sink.persist(record, "1818", {})
        self.assertTrue(any("Failed to save raw JSON" in line for line in logs.output))

    def test_unserializable_blob_is_swallowed(self):
        circular = {}
        circular["self"] = circular
        with self.assertLogs("harvester.sink", level="WARNING"):
            self.assertFalse(self.sink.save_raw("1", "u", {"bad": circular}))


if __name__ == '__main__':
    unittest.main()
