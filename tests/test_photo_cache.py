"""
PhotoCache と JsonFileStore のテスト
"""
import os
import sys
import json
import shutil
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fakes import DictStore, make_photos, use_temp_config
from models import JsonFileStore, PhotoCache, CacheError

class TestPhotoCache(unittest.TestCase):
    """PhotoCacheのテストクラス"""

    def setUp(self):
        self.temp_dir = use_temp_config()
        self.store_path = os.path.join(self.temp_dir, "storage.json")
        self.cache = PhotoCache(JsonFileStore(self.store_path))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_read_empty_store_returns_none(self):
        self.assertIsNone(self.cache.read())

    def test_write_then_read(self):
        photos = make_photos(0, 10)

        self.assertTrue(self.cache.write(photos, 1700000000000))
        entry = self.cache.read()

        self.assertIsNotNone(entry)
        self.assertEqual(entry.photos, photos)
        self.assertEqual(entry.stored_at, 1700000000000)

    def test_stored_as_two_string_entries(self):
        self.cache.write(make_photos(0, 2), 1234)

        with open(self.store_path, 'r', encoding='utf-8') as f:
            raw = json.load(f)

        self.assertEqual(raw["cached_flickr_data_expiry"], "1234")
        stored = json.loads(raw["cached_flickr_home_data"])
        self.assertEqual(stored[0], {"id": "0", "url": "https://example.com/0.jpg",
                                     "title": "photo 0", "secret": "s0"})

    def test_corrupt_store_file_reads_as_empty(self):
        with open(self.store_path, 'w', encoding='utf-8') as f:
            f.write("{not json")

        self.assertIsNone(self.cache.read())
        self.assertEqual(self.cache.get_stats()["errors"], 1)

    def test_corrupt_payload_reads_as_empty(self):
        store = DictStore()
        store.data = {"cached_flickr_home_data": "[{\"title\": \"no id\"}]",
                      "cached_flickr_data_expiry": "1234"}
        cache = PhotoCache(store)

        self.assertIsNone(cache.read())
        self.assertEqual(store.data, {}, "壊れたエントリが削除されていません")
        self.assertEqual(cache.get_stats()["errors"], 1)

    def test_non_numeric_timestamp_reads_as_empty(self):
        store = DictStore()
        store.data = {"cached_flickr_home_data": "[]", "cached_flickr_data_expiry": "yesterday"}

        self.assertIsNone(PhotoCache(store).read())

    def test_storage_failures_are_swallowed(self):
        cache = PhotoCache(DictStore(fail_reads=True, fail_writes=True))

        self.assertIsNone(cache.read())
        self.assertFalse(cache.write(make_photos(0, 1), 1234))
        self.assertEqual(cache.get_stats()["errors"], 2)

    def test_read_failure_keeps_stored_entry(self):
        store = DictStore()
        cache = PhotoCache(store)
        cache.write(make_photos(0, 3), 1234)

        store.fail_reads = True
        self.assertIsNone(cache.read())

        store.fail_reads = False
        self.assertEqual(len(cache.read().photos), 3)

class TestJsonFileStore(unittest.TestCase):
    """JsonFileStoreのテストクラス"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix="test_store_")
        self.store = JsonFileStore(os.path.join(self.temp_dir, "nested", "store.json"))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_set_get_remove(self):
        self.store.multi_set([("a", "1"), ("b", "2"), ("c", "3")])

        self.assertEqual(self.store.multi_get(["b", "c", "d"]), {"b": "2", "c": "3", "d": None})

        self.store.remove_item("a")
        self.assertEqual(self.store.multi_get(["a"]), {"a": None})

    def test_non_object_file_raises_cache_error(self):
        os.makedirs(os.path.dirname(self.store.path), exist_ok=True)
        with open(self.store.path, 'w', encoding='utf-8') as f:
            f.write("[1, 2, 3]")

        with self.assertRaises(CacheError):
            self.store.multi_get(["a"])

if __name__ == '__main__':
    unittest.main()
