"""
同期状態モデルモジュール

データ同期コントローラーが保持する状態と、UIへ公開する不変スナップショットを提供します。
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from .photo import Photo

class SyncPhase(Enum):
    """同期処理のフェーズ"""
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    READY = "ready"
    LOADING_MORE = "loading_more"
    REFRESHING = "refreshing"
    ERROR = "error"

    @property
    def is_loading(self) -> bool:
        return self in (SyncPhase.LOADING_INITIAL, SyncPhase.LOADING_MORE, SyncPhase.REFRESHING)

@dataclass(frozen=True)
class SyncSnapshot:
    """
    UIへ公開する状態のスナップショット

    ローディング・エラー表示用のフラグはすべて phase から導出します。
    """
    phase: SyncPhase = SyncPhase.IDLE
    query: str = ""
    page: int = 1
    photos: Tuple[Photo, ...] = ()
    has_more: bool = True
    error_message: Optional[str] = None
    is_searching: bool = False

    @property
    def is_loading_initial(self) -> bool:
        return self.phase in (SyncPhase.LOADING_INITIAL, SyncPhase.REFRESHING)

    @property
    def is_refreshing(self) -> bool:
        return self.phase is SyncPhase.REFRESHING

    @property
    def is_loading_more(self) -> bool:
        return self.phase is SyncPhase.LOADING_MORE

    @property
    def show_retry(self) -> bool:
        """リトライバーを表示するか（エラーかつ表示する写真がない）"""
        return self.phase is SyncPhase.ERROR and not self.photos

    @property
    def is_empty(self) -> bool:
        return self.phase is SyncPhase.READY and not self.photos

@dataclass
class SyncState:
    """
    コントローラー専用の可変状態

    request_token はインスタンスごとに単調増加します。
    photos は id が重複しないことを保証します（ResultMerger経由でのみ更新）。
    """
    phase: SyncPhase = SyncPhase.IDLE
    query: str = ""
    page: int = 1
    photos: Tuple[Photo, ...] = field(default_factory=tuple)
    has_more: bool = True
    error_message: Optional[str] = None
    request_token: int = 0
    is_searching: bool = False

    def next_token(self) -> int:
        """新しいリクエストトークンを発行"""
        self.request_token += 1
        return self.request_token

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            phase=self.phase,
            query=self.query,
            page=self.page,
            photos=self.photos,
            has_more=self.has_more,
            error_message=self.error_message,
            is_searching=self.is_searching,
        )

    def provisional(self, photos: Tuple[Photo, ...]) -> SyncSnapshot:
        """キャッシュ表示用の暫定 READY スナップショット（状態自体は変更しない）"""
        return replace(self.snapshot(), phase=SyncPhase.READY, photos=photos, error_message=None)
