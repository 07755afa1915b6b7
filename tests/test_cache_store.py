"""
Tests for the durable cache file format.
"""

import json
from datetime import timedelta

import pytest

from cache_store import CACHE_FILE_NAME, CacheStore
from conftest import NOW
from exceptions import PersistenceError
from news_feed import CacheEntry, FeedSnapshot, NewsItem


@pytest.fixture
def entries():
    snapshot = FeedSnapshot(
        source_url="http://www.hsb.se/norr/brf/hagern/nyheter",
        title="Brf Hägern",
        description="",
        items=(
            NewsItem("Årsstämma", "http://www.hsb.se/a/", NOW, "Välkommen"),
            NewsItem("Utan datum", "http://www.hsb.se/b/", None, "Text"),
            NewsItem(None, None, None, None),
        ),
        last_build_date=NOW,
    )
    return {
        "norr/hagern": CacheEntry("norr/hagern", snapshot, NOW - timedelta(seconds=5)),
    }


class TestCacheStore:
    def test_default_directory_is_temp_dir(self):
        import tempfile

        store = CacheStore()
        assert store.path.parent == CacheStore(tempfile.gettempdir()).path.parent
        assert store.path.name == CACHE_FILE_NAME

    def test_missing_file_loads_empty(self, tmp_path):
        assert CacheStore(tmp_path).load() == {}

    def test_saved_entries_load_back(self, tmp_path, entries):
        store = CacheStore(tmp_path)
        store.save(entries, NOW)

        loaded = store.load()

        entry = loaded["norr/hagern"]
        assert entry.key == "norr/hagern"
        assert entry.last_refreshed_at == NOW - timedelta(seconds=5)
        assert entry.snapshot == entries["norr/hagern"].snapshot
        assert entry.snapshot.last_build_date == NOW
        assert [item.publish_date for item in entry.snapshot.items] == [NOW, None, None]
        assert [item.guid for item in entry.snapshot.items] == [
            item.guid for item in entries["norr/hagern"].snapshot.items
        ]

    def test_file_is_versioned_json(self, tmp_path, entries):
        store = CacheStore(tmp_path)
        store.save(entries, NOW)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["schema_version"] == 1
        assert set(data["entries"]) == {"norr/hagern"}
        assert data["entries"]["norr/hagern"]["snapshot"]["title"] == "Brf Hägern"

    def test_save_leaves_no_temporary_files(self, tmp_path, entries):
        store = CacheStore(tmp_path)
        store.save(entries, NOW)
        store.save(entries, NOW)

        assert [p.name for p in tmp_path.iterdir()] == [CACHE_FILE_NAME]

    def test_save_creates_directory(self, tmp_path, entries):
        store = CacheStore(tmp_path / "nested" / "dir")
        store.save(entries, NOW)
        assert store.exists()

    def test_invalid_json_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text("{ not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            CacheStore(tmp_path).load()

    def test_other_schema_version_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text(
            json.dumps({"schema_version": 2, "saved_at": NOW.isoformat(), "entries": {}}),
            encoding="utf-8",
        )
        with pytest.raises(PersistenceError, match="schema version"):
            CacheStore(tmp_path).load()

    def test_schema_mismatch_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text(
            json.dumps(
                {
                    "schema_version": 1,
                    "saved_at": NOW.isoformat(),
                    "entries": {"x": {"snapshot": {"title": "no url"}}},
                }
            ),
            encoding="utf-8",
        )
        with pytest.raises(PersistenceError):
            CacheStore(tmp_path).load()

    def test_non_object_document_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            CacheStore(tmp_path).load()

    def test_discard_removes_file(self, tmp_path, entries):
        store = CacheStore(tmp_path)
        store.save(entries, NOW)
        store.discard()
        assert not store.exists()
        store.discard()

    def test_timestamp_without_offset_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text(
            json.dumps(
                {
                    "schema_version": 1,
                    "saved_at": "2026-10-19T12:00:00",
                    "entries": {
                        "norr": {
                            "last_refreshed_at": "2026-10-19T12:00:00",
                            "snapshot": {"source_url": "https://www.hsb.se/norr", "title": "HSB"},
                        }
                    },
                }
            ),
            encoding="utf-8",
        )
        with pytest.raises(PersistenceError):
            CacheStore(tmp_path).load()

    def test_deeply_nested_json_raises(self, tmp_path):
        (tmp_path / CACHE_FILE_NAME).write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
        with pytest.raises(PersistenceError):
            CacheStore(tmp_path).load()
