"""
フォトキャッシュモジュール

ホームフィード（検索なし）の最初のページを1件だけ保存するキャッシュゲートウェイを提供します。
有効期限の判定は呼び出し側（同期コントローラー）の責務です。
"""
import json
from typing import Optional, Sequence

from .errors import CacheError
from .key_value_store import KeyValueStore
from .photo import CacheEntry, Photo
from utils import logger, get_config

class PhotoCache:
    """
    写真リストと保存時刻（エポックミリ秒）を2つの文字列エントリとして保存するクラス

    read() と write() は例外を送出しません。失敗時はログに記録して空の結果を返します。
    """

    def __init__(self, store: KeyValueStore, data_key: str = None, timestamp_key: str = None):
        """
        初期化

        Args:
            store: 永続化に使用するキー・バリューストア
            data_key: 写真リストを保存するキー
            timestamp_key: 保存時刻を保存するキー
        """
        config = get_config()
        self.store = store
        self.data_key = data_key or config.get("cache.data_key", "cached_flickr_home_data")
        self.timestamp_key = timestamp_key or config.get("cache.timestamp_key", "cached_flickr_data_expiry")

        self.stats = {
            "hits": 0,
            "misses": 0,
            "writes": 0,
            "errors": 0,
        }

    def read(self) -> Optional[CacheEntry]:
        """
        キャッシュを読み込む

        保存内容が壊れている場合はエントリを削除します。

        Returns:
            CacheEntry or None: 保存されていない、または読み込みに失敗した場合はNone
        """
        try:
            values = self.store.multi_get([self.data_key, self.timestamp_key])
        except CacheError as e:
            self.stats["errors"] += 1
            logger.warning(f"キャッシュの読み込みに失敗しました: {e}")
            return None

        raw_photos = values.get(self.data_key)
        raw_stored_at = values.get(self.timestamp_key)
        if not raw_photos or not raw_stored_at:
            self.stats["misses"] += 1
            return None

        try:
            photos = tuple(Photo.from_dict(item) for item in json.loads(raw_photos))
            entry = CacheEntry(photos=photos, stored_at=int(raw_stored_at))
        except (ValueError, KeyError, TypeError) as e:
            self.stats["errors"] += 1
            logger.warning(f"キャッシュの内容が不正なため削除します: {e}")
            self.clear()
            return None

        self.stats["hits"] += 1
        logger.debug(f"キャッシュを読み込みました: {len(entry.photos)}件 (stored_at={entry.stored_at})")
        return entry

    def write(self, photos: Sequence[Photo], stored_at: int) -> bool:
        """
        キャッシュを書き込む（ベストエフォート）

        Args:
            photos: 保存する写真リスト
            stored_at: 保存時刻（エポックミリ秒）

        Returns:
            bool: 保存が成功した場合はTrue
        """
        try:
            payload = json.dumps([photo.to_dict() for photo in photos], ensure_ascii=False)
            self.store.multi_set([
                (self.data_key, payload),
                (self.timestamp_key, str(int(stored_at))),
            ])
        except Exception as e:
            self.stats["errors"] += 1
            logger.warning(f"キャッシュの書き込みに失敗しました: {e}")
            return False

        self.stats["writes"] += 1
        logger.debug(f"キャッシュを書き込みました: {len(photos)}件")
        return True

    def clear(self) -> bool:
        """キャッシュを削除"""
        try:
            self.store.remove_item(self.data_key)
            self.store.remove_item(self.timestamp_key)
            return True
        except CacheError as e:
            self.stats["errors"] += 1
            logger.warning(f"キャッシュの削除に失敗しました: {e}")
            return False

    def get_stats(self):
        return dict(self.stats)
