"""
結果マージ関数のテスト
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fakes import make_photos
from models import Photo, merge_append, merge_replace

class TestResultMerger(unittest.TestCase):
    """merge_append / merge_replace のテストクラス"""

    def test_append_keeps_existing_order_and_drops_duplicates(self):
        existing = make_photos(0, 20)
        incoming = make_photos(15, 20)  # 15-19 が重複

        merged = merge_append(existing, incoming)

        self.assertEqual(len(merged), 35)
        self.assertEqual(merged[:20], existing, "既存の並び順が変わっています")
        self.assertEqual([p.id for p in merged[20:]], [str(i) for i in range(20, 35)])

    def test_existing_entry_wins_on_collision(self):
        existing = (Photo(id="1", url="https://example.com/old.jpg", title="old"),)
        incoming = (Photo(id="1", url="https://example.com/new.jpg", title="new"),)

        merged = merge_append(existing, incoming)

        self.assertEqual(merged, existing)

    def test_duplicates_inside_incoming_are_collapsed(self):
        a = Photo(id="a", url="https://example.com/a.jpg")
        b = Photo(id="b", url="https://example.com/b.jpg")

        merged = merge_append((), (a, b, a))

        self.assertEqual(merged, (a, b))

    def test_ids_stay_unique_over_many_merges(self):
        merged = ()
        for start in range(0, 100, 7):
            merged = merge_append(merged, make_photos(start, 10))

        ids = [p.id for p in merged]
        self.assertEqual(len(ids), len(set(ids)), "id が重複しています")

    def test_replace_returns_incoming(self):
        incoming = make_photos(5, 3)
        self.assertEqual(merge_replace(incoming), incoming)
        self.assertEqual(merge_replace([]), ())

if __name__ == '__main__':
    unittest.main()
