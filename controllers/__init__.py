"""
コントローラーモジュールの初期化ファイル

データ同期、非同期処理、モデルとビュー間の連携を担当するクラスを提供します。
"""
from .worker_manager import WorkerManager
from .workers import BaseWorker, CancellationError
from .request_gateway import FlickrGateway, parse_page
from .page_fetch_worker import PageFetchWorker
from .query_debouncer import QueryDebouncer
from .sync_controller import SyncController
from .thumbnail_loader import ThumbnailLoader

__all__ = [
    'WorkerManager',
    'BaseWorker',
    'CancellationError',
    'FlickrGateway',
    'parse_page',
    'PageFetchWorker',
    'QueryDebouncer',
    'SyncController',
    'ThumbnailLoader',
]
