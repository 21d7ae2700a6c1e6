"""
QueryDebouncer のテスト

タイマーの経過は QTest.qWait でイベントループを回して待ちます。
"""
import os
import sys
import shutil
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from PySide6.QtTest import QTest

from fakes import use_temp_config
from controllers import QueryDebouncer

DELAY_MS = 50

class TestQueryDebouncer(unittest.TestCase):
    """QueryDebouncerのテストクラス"""

    def setUp(self):
        self.temp_dir = use_temp_config()
        self.calls = []
        self.debouncer = QueryDebouncer(self.calls.append, delay_ms=DELAY_MS, min_length=2)

    def tearDown(self):
        self.debouncer.cancel()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_burst_of_keystrokes_starts_one_search(self):
        self.debouncer.text_changed("c")
        self.debouncer.text_changed("ca")

        self.assertEqual(self.calls, [], "遅延前に検索が開始されています")
        self.assertTrue(self.debouncer.is_pending)

        QTest.qWait(DELAY_MS * 4)

        self.assertEqual(self.calls, ["ca"])
        self.assertFalse(self.debouncer.is_pending)

    def test_single_character_does_not_search(self):
        self.debouncer.text_changed("c")

        self.assertFalse(self.debouncer.is_pending)
        QTest.qWait(DELAY_MS * 3)
        self.assertEqual(self.calls, [])

    def test_shortening_to_one_character_cancels_pending_search(self):
        self.debouncer.text_changed("ca")
        self.debouncer.text_changed("c")

        QTest.qWait(DELAY_MS * 3)
        self.assertEqual(self.calls, [])

    def test_empty_text_returns_to_home_feed_immediately(self):
        self.debouncer.text_changed("cats")
        self.debouncer.text_changed("")

        self.assertEqual(self.calls, [""])
        QTest.qWait(DELAY_MS * 3)
        self.assertEqual(self.calls, [""], "取り消したタイマーが発火しています")

    def test_search_text_is_trimmed(self):
        self.debouncer.text_changed("  dogs ")
        QTest.qWait(DELAY_MS * 4)
        self.assertEqual(self.calls, ["dogs"])

    def test_submit_preempts_pending_timer(self):
        self.debouncer.text_changed("ca")

        self.assertTrue(self.debouncer.submit(" cat "))
        self.assertEqual(self.calls, ["cat"])

        QTest.qWait(DELAY_MS * 3)
        self.assertEqual(self.calls, ["cat"])

    def test_submit_ignores_blank_text(self):
        self.assertFalse(self.debouncer.submit("   "))
        self.assertEqual(self.calls, [])

if __name__ == '__main__':
    unittest.main()
