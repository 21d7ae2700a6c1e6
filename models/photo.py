"""
写真データモデルモジュール

APIから取得した写真、ページ結果、キャッシュエントリを表す不変データクラスを提供します。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

UNTITLED = "Untitled"

@dataclass(frozen=True)
class Photo:
    """
    取得済みの写真1件

    id はクエリごとの累積結果の中で一意です。
    secret はグリッド項目のキー（"{id}-{secret}"）に使用します。
    """
    id: str
    url: str
    title: str = UNTITLED
    secret: str = ""

    @property
    def item_key(self) -> str:
        """グリッド項目のキー"""
        return f"{self.id}-{self.secret}"

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "url": self.url, "title": self.title, "secret": self.secret}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Photo":
        """
        辞書から写真を生成

        Raises:
            KeyError, TypeError: 必須フィールドが欠けている場合
        """
        return cls(
            id=str(data["id"]),
            url=str(data["url"]),
            title=data.get("title") or UNTITLED,
            secret=str(data.get("secret") or ""),
        )

@dataclass(frozen=True)
class PageResult:
    """1ページ分の取得結果"""
    photos: Tuple[Photo, ...]
    page_number: int
    total_pages: int

    @property
    def has_more(self) -> bool:
        return self.page_number < self.total_pages

@dataclass(frozen=True)
class CacheEntry:
    """キャッシュされたホームフィード（stored_at はエポックミリ秒）"""
    photos: Tuple[Photo, ...] = field(default_factory=tuple)
    stored_at: int = 0

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.stored_at
