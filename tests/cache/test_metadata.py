"""
Tests for the JSON metadata store.
"""

import json
import threading
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from wallcache.core.cache.metadata import MetadataStore
from wallcache.models import CacheEntry


def make_entry(url: str, size: int = 100) -> CacheEntry:
    return CacheEntry(
        source_url=url,
        local_path=f"/cache/{url.rsplit('/', 1)[-1]}",
        download_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        file_size=size,
        image_id=url.rsplit('/', 1)[-1],
    )


class TestMetadataRead:
    """Test tolerant reading."""

    def test_missing_file_reads_empty(self, store):
        assert store.read() == {}

    def test_corrupt_file_reads_empty(self, store):
        store.path.write_text("{not json")
        assert store.read() == {}

    def test_non_object_reads_empty(self, store):
        store.path.write_text("[1, 2, 3]")
        assert store.read() == {}

    def test_malformed_entries_are_skipped(self, store):
        store.path.write_text(json.dumps({
            'https://x/a.jpg': {'localPath': '/cache/a.jpg', 'fileSize': 5,
                                'downloadTime': '2024-01-01T00:00:00.000Z'},
            'https://x/b.jpg': "garbage",
        }))

        entries = store.read()

        assert list(entries) == ['https://x/a.jpg']
        assert entries['https://x/a.jpg'].file_size == 5

    def test_reads_desktop_written_metadata(self, store):
        store.path.write_text(json.dumps({
            'https://x/a.jpg': {
                'id': '1', 'localPath': 'C:\\cache\\a.jpg', 'downloadTime': '2024-05-01T10:00:00.000Z',
                'originalUrl': 'https://x/a.jpg', 'fileSize': 2048,
            }
        }))

        entry = store.get('https://x/a.jpg')

        assert entry.image_id == '1'
        assert entry.download_time == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


class TestMetadataWrite:
    """Test atomic whole-file writes."""

    def test_put_and_get(self, store):
        entry = make_entry('https://x/a.jpg')
        store.put(entry)

        assert store.get('https://x/a.jpg') == entry
        on_disk = json.loads(store.path.read_text())
        assert on_disk['https://x/a.jpg']['fileSize'] == 100
        assert on_disk['https://x/a.jpg']['downloadTime'] == '2024-01-01T00:00:00.000Z'

    def test_remove(self, store):
        store.put(make_entry('https://x/a.jpg'))

        assert store.remove('https://x/a.jpg') is True
        assert store.remove('https://x/a.jpg') is False
        assert store.read() == {}

    def test_no_temp_files_left_behind(self, store, cache_dir):
        store.put(make_entry('https://x/a.jpg'))
        store.put(make_entry('https://x/b.jpg'))

        assert [p.name for p in cache_dir.iterdir()] == ['metadata.json']

    def test_failed_write_keeps_previous_document(self, store, cache_dir):
        store.put(make_entry('https://x/a.jpg'))

        with patch('wallcache.core.cache.metadata.os.replace', side_effect=OSError("disk full")):
            assert store.write({'https://x/b.jpg': make_entry('https://x/b.jpg')}) is False

        assert list(store.read()) == ['https://x/a.jpg']
        assert [p.name for p in cache_dir.iterdir()] == ['metadata.json']

    def test_put_survives_write_failure(self, store):
        with patch('wallcache.core.cache.metadata.os.replace', side_effect=OSError("read-only")):
            store.put(make_entry('https://x/a.jpg'))  # Must not raise

        assert store.read() == {}

    def test_creates_parent_directory(self, tmp_path):
        store = MetadataStore(tmp_path / "new" / "metadata.json")
        store.put(make_entry('https://x/a.jpg'))
        assert store.path.exists()


class TestMetadataConcurrency:
    """Test serialised read-modify-write cycles."""

    def test_update_returns_mutator_result(self, store):
        result = store.update(lambda entries: len(entries))
        assert result == 0

    def test_unchanged_update_does_not_create_file(self, store):
        store.update(lambda entries: None)
        assert not store.path.exists()

    def test_unchanged_update_skips_write(self, store):
        store.put(make_entry("https://x/1.jpg"))

        with patch.object(store, 'write') as write:
            store.update(lambda entries: entries.get("https://x/1.jpg"))

        write.assert_not_called()

    def test_changed_update_writes(self, store):
        store.put(make_entry("https://x/1.jpg"))

        def _grow(entries):
            entries["https://x/1.jpg"].file_size = 200

        store.update(_grow)

        assert store.get("https://x/1.jpg").file_size == 200

    def test_concurrent_puts_lose_nothing(self, store):
        urls = [f"https://x/{i}.jpg" for i in range(20)]
        threads = [threading.Thread(target=store.put, args=(make_entry(url),)) for url in urls]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(store.read()) == sorted(urls)


class TestStoreFiles:
    """Test recognition of the store's own files."""

    @pytest.mark.parametrize("name,expected", [
        ("metadata.json", True),
        (".metadata-abc123.tmp", True),
        ("5d41402abc4b2a76b9719d911017c592.jpg", False),
        ("metadata.json.bak", False),
    ])
    def test_is_store_file(self, store, cache_dir, name, expected):
        assert store.is_store_file(cache_dir / name) is expected
