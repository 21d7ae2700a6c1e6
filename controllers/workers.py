"""
ワーカーモジュール

バックグラウンド処理を行うワーカークラスの基盤を提供します。
"""
import time
import logging
from typing import Any, Optional

from PySide6.QtCore import QObject, Signal, Slot, QRunnable

from utils import logger

class WorkerSignals(QObject):
    """
    ワーカーが発行するシグナルを定義するクラス

    QRunnableはQObjectを継承していないため、このクラスを通じてシグナルを発行します。
    """
    finished = Signal()  # ワーカーが終了した（成功でもエラーでも）
    error = Signal(object)  # 発生した例外
    result = Signal(object)  # 処理結果

class CancellationError(Exception):
    """ワーカーのキャンセルを示す例外"""
    pass

class BaseWorker(QRunnable):
    """
    基本ワーカークラス

    すべてのワーカークラスの基底クラスとして使用します。
    キャンセルされたワーカーは結果もエラーも発行しません。
    """

    def __init__(self, worker_id: Optional[str] = None):
        """
        初期化

        Args:
            worker_id: ワーカーの識別子（省略時は自動生成）
        """
        super().__init__()
        # WorkerManager が参照を保持するため、自動削除は無効にする
        self.setAutoDelete(False)
        self.signals = WorkerSignals()
        self._is_cancelled = False
        self._start_time = 0
        self.worker_id = worker_id or f"worker_{id(self)}"

    @property
    def is_cancelled(self) -> bool:
        """Check if the worker has been cancelled."""
        return self._is_cancelled

    def cancel(self) -> bool:
        """
        処理をキャンセル

        Returns:
            bool: キャンセルフラグが設定された場合はTrue, 既にキャンセル済みの場合はFalse
        """
        if self._is_cancelled:
            logger.debug(f"Worker {self.worker_id} already cancelled.")
            return False

        logger.debug(f"Cancellation requested for worker: {self.worker_id}")
        self._is_cancelled = True
        return True

    def check_cancelled(self):
        """
        キャンセル状態をチェックし、キャンセルされていた場合は例外を発生させる

        Raises:
            CancellationError: キャンセルされた場合
        """
        if self._is_cancelled:
            raise CancellationError(f"Worker {self.worker_id} was cancelled.")

    def emit_result(self, result: Any) -> None:
        """結果を発行（サブクラスで専用シグナルに置き換え可能）"""
        self._safe_emit(self.signals.result, "result", result)

    def emit_error(self, error: Exception) -> None:
        """エラーを発行（サブクラスで専用シグナルに置き換え可能）"""
        self._safe_emit(self.signals.error, "error", error)

    def _safe_emit(self, signal, name: str, *args) -> None:
        """シグナルを発行（受信側が既に破棄されている場合は警告のみ）"""
        try:
            signal.emit(*args)
        except RuntimeError as e:
            logger.warning(f"Could not emit {name} signal for {self.worker_id}: {e}")

    @Slot()
    def run(self) -> None:
        """ワーカーの実行スレッドエントリポイント"""
        self._start_time = time.time()
        logger.debug(f"Worker '{self.worker_id}' started.")
        error_occurred = False

        try:
            self.check_cancelled()

            result = self.work()

            # 結果を発行する直前にもう一度確認（キャンセル後の結果は捨てる）
            self.check_cancelled()
            self.emit_result(result)

        except CancellationError:
            logger.debug(f"Worker '{self.worker_id}' cancelled.")

        except Exception as e:
            error_occurred = True
            logger.warning(f"Worker '{self.worker_id}' encountered an error: {type(e).__name__}: {e}")
            logger.debug(f"Error details for {self.worker_id}:", exc_info=True)
            if not self._is_cancelled:
                self.emit_error(e)

        finally:
            elapsed = time.time() - self._start_time
            log_level = logging.WARNING if error_occurred else logging.DEBUG
            logger.log(log_level, f"Worker '{self.worker_id}' finished. Elapsed: {elapsed:.3f}s")
            self._safe_emit(self.signals.finished, "finished")

    def work(self) -> Any:
        """
        実際の処理を行うメソッド (Must be overridden by subclasses)

        処理中は定期的に check_cancelled() を呼び出して、キャンセル要求をチェックしてください。

        Raises:
            NotImplementedError: オーバーライドされていない場合
        """
        raise NotImplementedError("Subclasses must implement the 'work' method.")
