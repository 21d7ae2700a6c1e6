"""
設定クラスのテスト
"""
import os
import sys
import json
import shutil
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import fakes  # noqa: F401  (パス設定)
from utils import Config

class TestConfig(unittest.TestCase):
    """Config のテストクラス"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix="test_photo_feed_config_")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults_are_written_on_first_run(self):
        config = Config(app_data_dir=self.temp_dir)

        self.assertEqual(config.get("cache.duration_ms"), 300000)
        self.assertEqual(config.get("search.debounce_ms"), 800)
        self.assertEqual(config.get("api.per_page"), 20)
        self.assertEqual(config.get("cache.store_file"), os.path.join(self.temp_dir, "storage.json"))
        self.assertTrue(os.path.exists(os.path.join(self.temp_dir, "config.json")))

    def test_file_values_override_defaults(self):
        with open(os.path.join(self.temp_dir, "config.json"), 'w', encoding='utf-8') as f:
            json.dump({"search": {"debounce_ms": 300}}, f)

        config = Config(app_data_dir=self.temp_dir)

        self.assertEqual(config.get("search.debounce_ms"), 300)
        self.assertEqual(config.get("search.min_length"), 2)

    def test_broken_file_falls_back_to_defaults(self):
        with open(os.path.join(self.temp_dir, "config.json"), 'w', encoding='utf-8') as f:
            f.write("{not json")

        config = Config(app_data_dir=self.temp_dir)

        self.assertEqual(config.get("cache.duration_ms"), 300000)

    def test_set_and_missing_key(self):
        config = Config(app_data_dir=self.temp_dir)

        self.assertTrue(config.set("display.grid_columns", 3))
        self.assertEqual(config.get("display.grid_columns"), 3)
        self.assertEqual(config.get("no.such.key", "fallback"), "fallback")

    def test_defaults_are_not_shared_between_instances(self):
        first = Config(app_data_dir=self.temp_dir)
        first.set("api.per_page", 50)

        other_dir = tempfile.mkdtemp(prefix="test_photo_feed_config_")
        try:
            second = Config(app_data_dir=other_dir)
            self.assertEqual(second.get("api.per_page"), 20)
        finally:
            shutil.rmtree(other_dir, ignore_errors=True)

    def test_api_key_from_environment(self):
        config = Config(app_data_dir=self.temp_dir)
        config.set("api.api_key", "from-file")

        with mock.patch.dict(os.environ, {"FLICKR_API_KEY": "from-env"}):
            self.assertEqual(config.get_api_key(), "from-env")
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(config.get_api_key(), "from-file")

if __name__ == '__main__':
    unittest.main()
