"""
検索入力デバウンスモジュール

入力が落ち着くまで検索の開始を遅延させるクラスを提供します。
"""
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Slot

from utils import logger, get_config

class QueryDebouncer(QObject):
    """
    検索文字列の変更を受け取り、一定時間入力がなければ検索を開始するクラス

    - min_length 文字以上: タイマーを開始し、経過後に start(text) を呼び出す
    - 0文字: タイマーを止めて即座に start('') を呼び出す（ホームフィードへ戻る）
    - それ以外: 何もしない（保留中のタイマーは止める）

    明示的な送信はタイマーより常に優先されます。
    """

    def __init__(self, start_callback: Callable[[str], None], delay_ms: int = None,
                 min_length: int = None, parent: Optional[QObject] = None):
        """
        初期化

        Args:
            start_callback: 検索を開始する関数（SyncController.start）
            delay_ms: デバウンスの遅延（ミリ秒）
            min_length: 自動検索を行う最小文字数
            parent: 親オブジェクト
        """
        super().__init__(parent)
        config = get_config()
        self._start_callback = start_callback
        self.delay_ms = delay_ms if delay_ms is not None else config.get("search.debounce_ms", 800)
        self.min_length = min_length if min_length is not None else config.get("search.min_length", 2)

        self._pending_text = ""
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(self.delay_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def is_pending(self) -> bool:
        """デバウンスタイマーが動作中かどうか"""
        return self._timer.isActive()

    def text_changed(self, text: str) -> None:
        """
        入力文字列の変更を処理

        Args:
            text: 変更後の入力文字列（トリム前）
        """
        self._timer.stop()
        self._pending_text = text

        if len(text) >= self.min_length:
            self._timer.start()
        elif len(text) == 0:
            logger.debug("検索文字列が空になったためホームフィードに戻ります")
            self._start_callback("")

    def submit(self, text: str) -> bool:
        """
        明示的な検索の送信（デバウンスなし）

        Args:
            text: 入力文字列

        Returns:
            bool: 検索を開始した場合はTrue
        """
        self._timer.stop()
        query = text.strip()
        if not query:
            return False
        logger.debug(f"検索を送信: {query!r}")
        self._start_callback(query)
        return True

    def cancel(self) -> None:
        """保留中のタイマーを止める"""
        self._timer.stop()

    @Slot()
    def _on_timeout(self):
        query = self._pending_text.strip()
        logger.debug(f"デバウンス経過、検索を開始: {query!r}")
        self._start_callback(query)
