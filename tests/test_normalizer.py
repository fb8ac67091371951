"""Tests for entry normalization."""
import unittest
from datetime import datetime, timezone

from fsclient.models import Entry
from fsclient.schemas import RawEntry
from fsclient.services.normalizer import normalize_entry, normalize_listing, normalize_search_result


class TestNormalizeEntry(unittest.TestCase):
    def test_timestamp_combines_seconds_and_nanos(self):
        entry = normalize_entry({
            "filename": "level.dat",
            "path": "/world/level.dat",
            "size": 10,
            "is_dir": False,
            "last_modified": {"secs_since_epoch": 10, "nanos_since_epoch": 500_000_000},
        })

        self.assertEqual(entry.modified_ms, 10500)
        self.assertEqual(entry.modified_at, datetime(1970, 1, 1, 0, 0, 10, 500000, tzinfo=timezone.utc))

    def test_missing_timestamps_stay_unset(self):
        entry = normalize_entry({"filename": "eula.txt", "path": "/eula.txt"})

        self.assertIsNone(entry.created_at)
        self.assertIsNone(entry.modified_at)
        self.assertIsNone(entry.created_ms)

    def test_leading_backslash_is_stripped(self):
        entry = normalize_entry({"filename": "bar", "path": "\\foo/bar"})

        self.assertEqual(entry.path, "foo/bar")

    def test_backslashes_become_forward_slashes(self):
        entry = normalize_entry({"filename": "c.txt", "path": "\\a\\b\\c.txt"})

        self.assertEqual(entry.path, "a/b/c.txt")

    def test_directories_are_folders(self):
        entry = normalize_entry({"filename": "world.zip", "path": "/world.zip", "is_dir": True})

        self.assertTrue(entry.is_directory)
        self.assertEqual(entry.type_label, "Folder")

    def test_type_label_from_extension(self):
        self.assertEqual(normalize_entry({"filename": "server.jar", "path": "/server.jar"}).type_label, "Java Archive")
        self.assertEqual(normalize_entry({"filename": "backup.TAR.GZ", "path": "/b"}).type_label, "Compressed TAR")
        self.assertEqual(normalize_entry({"filename": "latest.log.gz", "path": "/l"}).type_label, "GZip Archive")
        self.assertEqual(normalize_entry({"filename": "README", "path": "/README"}).type_label, "File")
        self.assertEqual(normalize_entry({"filename": "data.qqq", "path": "/data.qqq"}).type_label, "File")

    def test_accepts_wire_model_and_name_alias(self):
        raw = RawEntry.model_validate({"name": "ops.json", "path": "/ops.json", "size": 2})

        entry = normalize_entry(raw)

        self.assertEqual(entry.name, "ops.json")
        self.assertEqual(entry.type_label, "JSON File")

    def test_normalizing_canonical_entry_is_noop(self):
        entry = normalize_entry({
            "filename": "server.properties",
            "path": "\\server.properties",
            "created": {"secs_since_epoch": 1, "nanos_since_epoch": 0},
        })

        again = normalize_entry(entry)

        self.assertIs(again, entry)
        self.assertEqual(again, Entry(**entry.model_dump()))


class TestNormalizeOtherShapes(unittest.TestCase):
    def test_search_result_uses_second_timestamps(self):
        entry = normalize_search_result({
            "filename": "ops.json",
            "path": "/srv/ops.json",
            "size": 64,
            "ctime": 10,
            "mtime": 20,
        })

        self.assertFalse(entry.is_directory)
        self.assertEqual(entry.created_ms, 10000)
        self.assertEqual(entry.modified_ms, 20000)
        self.assertEqual(entry.type_label, "JSON File")

    def test_listing(self):
        listing = normalize_listing({
            "parent": None,
            "entries": [
                {"filename": "world", "path": "/world", "is_dir": True},
                {"filename": "server.jar", "path": "/server.jar", "size": 2048},
            ],
        })

        self.assertIsNone(listing.parent_path)
        self.assertEqual([entry.name for entry in listing.entries], ["world", "server.jar"])
        self.assertEqual(listing.find("server.jar").size, 2048)
        self.assertIsNone(listing.find("missing"))


if __name__ == "__main__":
    unittest.main()
