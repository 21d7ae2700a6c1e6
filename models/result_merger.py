"""
結果マージモジュール

ページ単位の結果を、id の重複なく順序付きの写真リストに統合する純粋関数を提供します。
"""
from typing import Iterable, Sequence, Tuple

from .photo import Photo

def merge_append(existing: Sequence[Photo], incoming: Iterable[Photo]) -> Tuple[Photo, ...]:
    """
    既存のリストの後ろに新しい写真を追加

    existing に既に存在する id の写真は捨てられます（既存側が優先）。
    incoming 内の重複も最初の1件のみ採用し、incoming の相対順序は保持します。

    Args:
        existing: 表示中の写真
        incoming: 新しく取得したページの写真

    Returns:
        Tuple[Photo, ...]: 統合後の写真リスト
    """
    seen_ids = {photo.id for photo in existing}
    merged = list(existing)
    for photo in incoming:
        if photo.id in seen_ids:
            continue
        seen_ids.add(photo.id)
        merged.append(photo)
    return tuple(merged)

def merge_replace(incoming: Iterable[Photo]) -> Tuple[Photo, ...]:
    """最初のページ用。incoming をそのまま（重複 id は最初の1件に絞って）返す"""
    return merge_append((), incoming)
