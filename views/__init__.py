"""
ビューモジュール

ユーザーインターフェースのコンポーネントを提供します。
"""
from .main_window import MainWindow
from .photo_grid_view import PhotoGridView, PhotoTile
from .retry_bar import RetryBar

__all__ = [
    "MainWindow",
    "PhotoGridView",
    "PhotoTile",
    "RetryBar",
]
