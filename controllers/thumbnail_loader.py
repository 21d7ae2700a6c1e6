"""
サムネイルローダーモジュール

グリッドに表示する写真の画像をバックグラウンドでダウンロードするクラスを提供します。
"""
from typing import Dict, Optional

import requests
from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QImage, QPixmap

from models import Photo
from utils import logger, get_config
from .workers import BaseWorker
from .worker_manager import WorkerManager

class ThumbnailDownloadWorker(BaseWorker):
    """1枚の画像をダウンロードして QImage に変換するワーカー"""

    def __init__(self, photo: Photo, session: requests.Session, timeout_s: float):
        super().__init__(worker_id=f"thumb_{photo.item_key}")
        self.photo = photo
        self.session = session
        self.timeout_s = timeout_s

    def work(self):
        response = self.session.get(self.photo.url, timeout=self.timeout_s)
        response.raise_for_status()
        self.check_cancelled()

        # QPixmap はGUIスレッドでのみ生成できるため、ここでは QImage まで
        image = QImage.fromData(response.content)
        if image.isNull():
            raise ValueError(f"画像をデコードできません: {self.photo.url}")
        return self.photo.item_key, image

class ThumbnailLoader(QObject):
    """
    表示中の写真のサムネイルを取得するクラス

    同じ写真に対する二重のダウンロードは行いません。reset() で進行中の取得をすべて取り消します。
    """
    thumbnail_ready = Signal(str, object)  # (item_key, QPixmap)

    def __init__(self, worker_manager: WorkerManager, session: Optional[requests.Session] = None,
                 timeout_ms: int = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        config = get_config()
        self.worker_manager = worker_manager
        self.session = session or requests.Session()
        self.timeout_s = (timeout_ms or config.get("api.timeout_ms", 10000)) / 1000.0
        self._requested: Dict[str, str] = {}  # item_key → worker_id

    def request(self, photo: Photo) -> bool:
        """
        サムネイルの取得を要求

        Returns:
            bool: 新しくダウンロードを開始した場合はTrue
        """
        if photo.item_key in self._requested:
            return False

        worker = ThumbnailDownloadWorker(photo, self.session, self.timeout_s)
        worker.signals.result.connect(self._on_downloaded)
        worker.signals.error.connect(self._on_failed)
        self._requested[photo.item_key] = worker.worker_id
        return self.worker_manager.start_worker(worker.worker_id, worker)

    def reset(self) -> None:
        """進行中のダウンロードをすべて取り消す"""
        for worker_id in self._requested.values():
            self.worker_manager.cancel_worker(worker_id)
        self._requested.clear()

    def close(self) -> None:
        """ダウンロードを取り消し、セッションを閉じる"""
        self.reset()
        self.session.close()

    @Slot(object)
    def _on_downloaded(self, result):
        item_key, image = result
        if item_key not in self._requested:
            return
        self.thumbnail_ready.emit(item_key, QPixmap.fromImage(image))

    @Slot(object)
    def _on_failed(self, error):
        logger.debug(f"サムネイルの取得に失敗: {error}")
