"""
モデルモジュールの初期化ファイル

アプリケーションのデータ構造とキャッシュを管理するクラスを提供します。
"""
from .photo import Photo, PageResult, CacheEntry
from .sync_state import SyncPhase, SyncState, SyncSnapshot
from .result_merger import merge_append, merge_replace
from .key_value_store import KeyValueStore, JsonFileStore
from .photo_cache import PhotoCache
from .errors import (
    FetchError, FetchCancelled, FetchTimeout, NetworkError, ApiError, CacheError,
    NETWORK_FAILURE_MESSAGE, MALFORMED_RESPONSE_MESSAGE,
)

__all__ = [
    'Photo',
    'PageResult',
    'CacheEntry',
    'SyncPhase',
    'SyncState',
    'SyncSnapshot',
    'merge_append',
    'merge_replace',
    'KeyValueStore',
    'JsonFileStore',
    'PhotoCache',
    'FetchError',
    'FetchCancelled',
    'FetchTimeout',
    'NetworkError',
    'ApiError',
    'CacheError',
    'NETWORK_FAILURE_MESSAGE',
    'MALFORMED_RESPONSE_MESSAGE',
]
