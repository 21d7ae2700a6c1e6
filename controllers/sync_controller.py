"""
同期コントローラーモジュール

キャッシュ表示、ネットワーク取得、ページの統合、検索入力のデバウンス、
古い応答の破棄を一元的に管理するコントローラーを提供します。

状態の変更はすべてGUIスレッド上で行われます。ネットワーク取得はワーカーで実行され、
結果はリクエストトークン付きのシグナルで戻ってきます。現在のトークンと一致しない応答は
到着順に関係なく破棄されます。
"""
import time
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal, Slot

from models import (
    SyncPhase, SyncState, SyncSnapshot, PageResult, FetchCancelled, FetchError,
    NetworkError, merge_append, merge_replace,
)
from utils import logger, get_config
from .page_fetch_worker import PageFetchWorker
from .query_debouncer import QueryDebouncer
from .worker_manager import WorkerManager

OP_START = "start"
OP_LOAD_MORE = "load_more"

def current_time_ms() -> int:
    """現在時刻（エポックミリ秒）"""
    return int(time.time() * 1000)

class SyncController(QObject):
    """
    写真グリッドのデータ同期コントローラー

    フェーズ遷移:
        IDLE --start--> LOADING_INITIAL --成功--> READY --load_more--> LOADING_MORE --成功--> READY
        READY --start/refresh--> LOADING_INITIAL / REFRESHING
        LOADING_INITIAL / REFRESHING --失敗--> ERROR
        LOADING_MORE --失敗--> READY（error_message 付き、写真は保持）
        ERROR --retry--> LOADING_INITIAL
    """
    state_changed = Signal(object)  # SyncSnapshot

    def __init__(self, gateway, cache, worker_manager: Optional[WorkerManager] = None,
                 cache_duration_ms: int = None, clock: Callable[[], int] = None,
                 debounce_ms: int = None, min_query_length: int = None,
                 parent: Optional[QObject] = None):
        """
        初期化

        Args:
            gateway: fetch_page(query, page_number, cancellation_token) を持つリクエストゲートウェイ
            cache: read() / write(photos, stored_at) を持つキャッシュゲートウェイ
            worker_manager: ワーカーマネージャー（省略時は新規作成）
            cache_duration_ms: キャッシュの有効期間（ミリ秒）
            clock: 現在時刻（エポックミリ秒）を返す関数
            debounce_ms: 検索入力のデバウンス時間（ミリ秒）
            min_query_length: 自動検索を行う最小文字数
            parent: 親オブジェクト
        """
        super().__init__(parent)
        config = get_config()
        self.gateway = gateway
        self.cache = cache
        self.worker_manager = worker_manager or WorkerManager()
        self.cache_duration_ms = cache_duration_ms or config.get("cache.duration_ms", 5 * 60 * 1000)
        self.clock = clock or current_time_ms

        self.state = SyncState()
        self.query_text = ""
        self.debouncer = QueryDebouncer(self.start, delay_ms=debounce_ms,
                                        min_length=min_query_length, parent=self)

        self._in_flight_id: Optional[str] = None
        self._pending = None  # (token, op, query, page_number)
        self._last_failure = None  # (op, query)
        self._disposed = False

    # --- 公開インターフェース ---

    def snapshot(self) -> SyncSnapshot:
        """現在の状態のスナップショット"""
        return self.state.snapshot()

    @property
    def is_request_in_flight(self) -> bool:
        return self._in_flight_id is not None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def start(self, query: str) -> None:
        """
        query の1ページ目から読み込みを開始

        初回（IDLE）のホームフィードでは、有効なキャッシュがあれば暫定的に表示してから
        ネットワーク取得を行います。

        Args:
            query: 検索文字列（空文字列はホームフィード）
        """
        self._begin_initial(query, use_cache=True, refreshing=False)

    def refresh(self) -> None:
        """現在のクエリを再読み込み（キャッシュは使わず、進行中の読み込みより優先）"""
        self._begin_initial(self.state.query, use_cache=False, refreshing=True)

    def load_more(self) -> bool:
        """
        次のページを読み込む

        READY でない、続きがない、またはリクエストが進行中の場合は何もしません。

        Returns:
            bool: 読み込みを開始した場合はTrue
        """
        if self._disposed:
            return False
        if self.state.phase is not SyncPhase.READY or not self.state.has_more or self.is_request_in_flight:
            return False

        token = self.state.next_token()
        next_page = self.state.page + 1
        self.state.phase = SyncPhase.LOADING_MORE
        self.state.error_message = None
        logger.debug(f"Loading page {next_page} (query={self.state.query!r}, token={token})")
        self._publish()
        self._dispatch(token, OP_LOAD_MORE, self.state.query, next_page)
        return True

    def retry(self) -> bool:
        """
        最後に失敗した操作を同じクエリで再実行

        Returns:
            bool: 再実行した場合はTrue
        """
        if self._disposed or self._last_failure is None:
            return False

        op, query = self._last_failure
        if op == OP_LOAD_MORE:
            if query != self.state.query:
                return False
            if self.state.phase is SyncPhase.LOADING_MORE and not self.is_request_in_flight:
                # 取り消された追加読み込みの状態から再開する
                self.state.phase = SyncPhase.READY
            return self.load_more()

        self._begin_initial(query, use_cache=False, refreshing=False)
        return True

    def cancel(self) -> None:
        """現在のトークンを無効化し、進行中のリクエストを中断"""
        self.state.next_token()
        self._pending = None
        self._abort_in_flight()

    def dispose(self) -> None:
        """デバウンスタイマーと進行中のリクエストを止め、以後の状態変更を禁止"""
        if self._disposed:
            return
        logger.debug("SyncController disposed.")
        self.debouncer.cancel()
        self.cancel()
        self._disposed = True

    def set_query_text(self, text: str) -> None:
        """検索欄の文字列変更（デバウンスして検索）"""
        if self._disposed:
            return
        self.query_text = text
        self.debouncer.text_changed(text)

    def submit_query(self, text: Optional[str] = None) -> bool:
        """
        検索の明示的な送信（保留中のデバウンスを取り消して即座に検索）

        Returns:
            bool: 検索を開始した場合はTrue
        """
        if self._disposed:
            return False
        if text is not None:
            self.query_text = text
        return self.debouncer.submit(self.query_text)

    def dismiss_error(self) -> None:
        """追加読み込み失敗時のインラインエラーを消す"""
        if self._disposed or self.state.phase is not SyncPhase.READY or not self.state.error_message:
            return
        self.state.error_message = None
        self._publish()

    # --- 内部処理 ---

    def _begin_initial(self, query: str, use_cache: bool, refreshing: bool) -> None:
        if self._disposed:
            return

        fast_path = use_cache and not query and self.state.phase is SyncPhase.IDLE

        self._abort_in_flight()
        token = self.state.next_token()

        if fast_path:
            cached = self._read_valid_cache()
            if cached:
                logger.info(f"Publishing {len(cached)} cached photos before the network fetch.")
                self.state_changed.emit(self.state.provisional(cached))

        # 失敗時に空の画面とリトライバーを出すため、読み込み開始時点で写真をクリアする
        self.state.phase = SyncPhase.REFRESHING if refreshing else SyncPhase.LOADING_INITIAL
        self.state.query = query
        self.state.page = 1
        self.state.has_more = True
        self.state.error_message = None
        self.state.photos = ()
        logger.info(f"Loading first page (query={query!r}, token={token}, refresh={refreshing})")
        self._publish()
        self._dispatch(token, OP_START, query, 1)

    def _read_valid_cache(self):
        """有効期限内のキャッシュがあれば写真を返す（有効性は毎回読み込み時に判定）"""
        entry = self.cache.read()
        if entry is None or not entry.photos:
            return ()
        age = entry.age_ms(self.clock())
        if 0 <= age < self.cache_duration_ms:
            return merge_replace(entry.photos)
        logger.debug(f"Cached feed expired (age={age}ms).")
        return ()

    def _dispatch(self, token: int, op: str, query: str, page_number: int) -> None:
        self._pending = (token, op, query, page_number)
        worker = PageFetchWorker(self.gateway, query, page_number, token)
        worker.signals.page_loaded.connect(self._on_page_loaded)
        worker.signals.page_failed.connect(self._on_page_failed)

        self._in_flight_id = worker.worker_id
        if not self.worker_manager.start_worker(worker.worker_id, worker):
            self._on_page_failed(token, NetworkError("Failed to start fetch worker"))

    def _abort_in_flight(self) -> None:
        if self._in_flight_id is not None:
            self.worker_manager.cancel_worker(self._in_flight_id)
            self._in_flight_id = None

    def _take_pending(self, token: int):
        """token が現在のものなら保留中の操作を取り出す。古い応答ならNone"""
        if self._disposed or self._pending is None or token != self.state.request_token:
            logger.debug(f"Discarding stale response (token={token}, current={self.state.request_token})")
            return None
        pending = self._pending
        self._pending = None
        self._in_flight_id = None
        return pending

    @Slot(int, object)
    def _on_page_loaded(self, token: int, result: PageResult) -> None:
        pending = self._take_pending(token)
        if pending is None:
            return
        _, op, query, _ = pending

        if op == OP_LOAD_MORE:
            self.state.photos = merge_append(self.state.photos, result.photos)
        else:
            self.state.photos = merge_replace(result.photos)
            self.state.is_searching = bool(query)
            if not query:
                self.cache.write(self.state.photos, self.clock())

        self.state.page = result.page_number
        self.state.has_more = result.has_more
        self.state.phase = SyncPhase.READY
        self.state.error_message = None
        self._last_failure = None
        logger.info(
            f"Loaded page {result.page_number}/{result.total_pages} (query={query!r}): "
            f"{len(self.state.photos)} photos total"
        )
        self._publish()

    @Slot(int, object)
    def _on_page_failed(self, token: int, error: FetchError) -> None:
        pending = self._take_pending(token)
        if pending is None:
            return
        _, op, query, page_number = pending

        if isinstance(error, FetchCancelled):
            # 状態は変えない。retry() で同じ操作をやり直せるよう記録だけ残す
            logger.warning(f"Current request was cancelled without being superseded (token={token}, op={op}).")
            self._last_failure = (op, query)
            return

        logger.warning(f"Failed to load page {page_number} (query={query!r}): {type(error).__name__}: {error}")
        message = getattr(error, "user_message", None) or NetworkError.user_message

        if op == OP_LOAD_MORE:
            self.state.phase = SyncPhase.READY
        else:
            self.state.phase = SyncPhase.ERROR
            self.state.photos = ()
        self.state.error_message = message
        self._last_failure = (op, query)
        self._publish()

    def _publish(self) -> None:
        self.state_changed.emit(self.state.snapshot())
