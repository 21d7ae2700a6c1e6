"""
ページ取得ワーカーモジュール

リクエストゲートウェイをスレッドプール上で実行し、結果をリクエストトークン付きで通知します。
"""
from PySide6.QtCore import Signal

from .workers import BaseWorker, WorkerSignals
from models import FetchCancelled, FetchError, NetworkError

class PageFetchSignals(WorkerSignals):
    """ページ取得ワーカー専用のシグナル"""
    page_loaded = Signal(int, object)  # (request_token, PageResult)
    page_failed = Signal(int, object)  # (request_token, FetchError)

class PageFetchWorker(BaseWorker):
    """
    1ページ分の取得を行うワーカー

    ワーカー自身がキャンセルトークンとしてゲートウェイに渡されます。
    キャンセル後は page_loaded も page_failed も発行しません。
    """

    def __init__(self, gateway, query: str, page_number: int, request_token: int):
        """
        初期化

        Args:
            gateway: fetch_page(query, page_number, cancellation_token) を持つオブジェクト
            query: 検索文字列
            page_number: 取得するページ番号
            request_token: このリクエストに割り当てられたトークン
        """
        super().__init__(worker_id=f"page_fetch_{request_token}")
        self.signals = PageFetchSignals()
        self.gateway = gateway
        self.query = query
        self.page_number = page_number
        self.request_token = request_token

    def work(self):
        try:
            return self.gateway.fetch_page(self.query, self.page_number, self)
        except FetchCancelled:
            self.check_cancelled()
            raise

    def emit_result(self, result) -> None:
        self._safe_emit(self.signals.page_loaded, "page_loaded", self.request_token, result)

    def emit_error(self, error: Exception) -> None:
        if not isinstance(error, FetchError):
            # 想定外の例外は通信エラーとして扱う
            wrapped = NetworkError(f"{type(error).__name__}: {error}")
            wrapped.__cause__ = error
            error = wrapped
        self._safe_emit(self.signals.page_failed, "page_failed", self.request_token, error)
