"""
ワーカーマネージャーモジュール

マルチスレッド処理を管理するクラスを提供します。
"""
from typing import Dict, Optional
import time
import threading

from PySide6.QtCore import QThreadPool, QObject

from utils import logger, get_config
from .workers import BaseWorker

class WorkerManager(QObject):
    """
    マルチスレッド処理を管理するクラス

    QThreadPoolを使用してQRunnableベースのワーカーを管理します。
    同じIDのワーカーを開始すると、既存のワーカーはキャンセルされます。
    """

    def __init__(self, max_threads: Optional[int] = None, threadpool: Optional[QThreadPool] = None):
        """
        初期化

        Args:
            max_threads: 最大スレッド数（Noneの場合は設定値を使用）
            threadpool: 使用するスレッドプール（省略時はグローバルインスタンス）
        """
        super().__init__()

        config = get_config()
        if max_threads is None:
            max_threads = config.get("workers.max_concurrent", QThreadPool.globalInstance().maxThreadCount())

        self.threadpool = threadpool or QThreadPool.globalInstance()
        if max_threads and max_threads > 0:
            self.threadpool.setMaxThreadCount(max_threads)

        logger.info(f"WorkerManager initialized: Max Threads={self.threadpool.maxThreadCount()}")

        self.active_workers: Dict[str, BaseWorker] = {}  # ワーカーID → ワーカーインスタンス
        self.worker_start_times: Dict[str, float] = {}  # ワーカーID → 開始時間
        self.mutex = threading.RLock()

    def start_worker(self, worker_id: str, worker: BaseWorker, priority: int = 0) -> bool:
        """
        ワーカーを開始

        Args:
            worker_id: ワーカーの識別子
            worker: 実行するワーカー (Must inherit from BaseWorker)
            priority: 優先度 (値が大きいほど優先度が高い)

        Returns:
            bool: ワーカーの起動に成功した場合はTrue
        """
        if not isinstance(worker, BaseWorker):
            logger.error(f"Worker {worker_id} must inherit from BaseWorker.")
            return False

        with self.mutex:
            if worker_id in self.active_workers:
                logger.debug(f"Worker with ID '{worker_id}' already active. Cancelling existing one.")
                self.cancel_worker(worker_id)

            worker.signals.finished.connect(lambda w_id=worker_id, w=worker: self._handle_worker_finished(w_id, w))

            self.active_workers[worker_id] = worker
            self.worker_start_times[worker_id] = time.time()

            logger.debug(f"Starting worker: {worker_id}, Priority={priority}")
            self.threadpool.start(worker, priority)

        return True

    def _handle_worker_finished(self, worker_id: str, worker: BaseWorker):
        """Handles the finished signal from a worker."""
        self.mark_worker_finished(worker_id, worker)

    def cancel_worker(self, worker_id: str) -> bool:
        """
        ワーカーをキャンセル

        キャンセルフラグを立てるだけで、ワーカーの終了は待ちません。

        Args:
            worker_id: キャンセルするワーカーの識別子

        Returns:
            bool: キャンセル操作が試行された場合はTrue
        """
        with self.mutex:
            worker = self.active_workers.pop(worker_id, None)
            self.worker_start_times.pop(worker_id, None)

        if worker is None:
            logger.debug(f"Worker {worker_id} not found in active workers for cancellation.")
            return False

        worker.cancel()
        logger.debug(f"Cancel method called for worker: {worker_id}")
        return True

    def cancel_all(self) -> int:
        """
        すべてのワーカーをキャンセル

        Returns:
            int: キャンセルが試行されたワーカーの数
        """
        with self.mutex:
            worker_ids_to_cancel = list(self.active_workers.keys())

        cancelled_count = sum(1 for worker_id in worker_ids_to_cancel if self.cancel_worker(worker_id))
        logger.info(f"Cancellation attempted for {cancelled_count} / {len(worker_ids_to_cancel)} workers.")
        return cancelled_count

    def wait_for_all(self, timeout_ms: int = -1) -> bool:
        """
        すべてのワーカーの完了を待機 (Uses QThreadPool.waitForDone)

        Args:
            timeout_ms: タイムアウト時間（ミリ秒）。-1で無限に待機。

        Returns:
            bool: タイムアウトせずにすべてのワーカーが完了した場合はTrue
        """
        result = self.threadpool.waitForDone(timeout_ms)
        if not result:
            logger.warning(f"waitForDone timed out. {self.get_active_workers_count()} workers potentially still active.")
        return result

    def get_active_workers_count(self) -> int:
        """現在アクティブなワーカーの数を取得"""
        with self.mutex:
            return len(self.active_workers)

    def mark_worker_finished(self, worker_id: str, worker: Optional[BaseWorker] = None) -> None:
        """
        ワーカーを完了状態としてマーク

        同じIDで新しいワーカーが登録されている場合、古いワーカーの完了では削除しません。

        Args:
            worker_id: 完了したワーカーの識別子
            worker: 完了したワーカーのインスタンス
        """
        with self.mutex:
            current = self.active_workers.get(worker_id)
            if current is None or (worker is not None and current is not worker):
                logger.debug(f"Worker '{worker_id}' already marked as finished or was replaced.")
                return

            start_time = self.worker_start_times.pop(worker_id, 0)
            elapsed_time = time.time() - start_time if start_time > 0 else 0
            del self.active_workers[worker_id]

        logger.debug(f"Worker '{worker_id}' marked as finished. Elapsed: {elapsed_time:.2f}s")
