"""
写真グリッドビューモジュール

同期コントローラーのスナップショットを描画し、スクロール終端付近で追加読み込みを要求する
グリッドビューを提供します。
"""
from typing import Dict, Optional, Tuple

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGridLayout, QScrollArea, QLabel, QFrame, QSizePolicy
)
from PySide6.QtCore import Qt, Signal, Slot, QSize, QTimer
from PySide6.QtGui import QPixmap

from models import Photo, SyncPhase, SyncSnapshot
from utils import logger, get_config

def is_near_end(value: int, maximum: int, page_step: int, threshold: float) -> bool:
    """
    スクロール位置が終端付近かどうか

    Args:
        value: 現在のスクロール位置
        maximum: スクロールの最大値（内容がビューポートに収まる場合は0）
        page_step: ビューポートの高さ
        threshold: 終端からの距離（ビューポート高さ比）

    Returns:
        bool: 終端付近の場合はTrue
    """
    return maximum - value <= page_step * threshold

class PhotoTile(QLabel):
    """グリッドの1マス"""
    clicked = Signal(str)

    def __init__(self, photo: Photo, size: QSize, parent=None):
        super().__init__(parent)
        self.photo = photo
        self.setFixedSize(size)
        self.setAlignment(Qt.AlignCenter)
        self.setWordWrap(True)
        self.setToolTip(photo.title)
        self.setText(photo.title)
        self.setProperty("imageLabel", True)

    def set_thumbnail(self, pixmap: QPixmap) -> None:
        self.setPixmap(pixmap.scaled(self.size(), Qt.KeepAspectRatioByExpanding, Qt.SmoothTransformation))

    def mousePressEvent(self, event):
        self.clicked.emit(self.photo.item_key)
        super().mousePressEvent(event)

class PhotoGridView(QWidget):
    """
    写真グリッドビュー

    表示中の写真の先頭が変わらない場合は差分のみ追加し、変わった場合は再構築します。
    """
    near_end = Signal()  # スクロールが終端付近に達した
    thumbnail_needed = Signal(object)  # Photo
    photo_clicked = Signal(str)  # item_key
    grid_cleared = Signal()  # 表示中のタイルがすべて破棄された

    def __init__(self, columns: int = None, tile_size: Tuple[int, int] = None,
                 end_reached_threshold: float = None, parent: Optional[QWidget] = None):
        """
        初期化

        Args:
            columns: 列数
            tile_size: 1マスのサイズ (width, height)
            end_reached_threshold: 追加読み込みを要求する終端からの距離（ビューポート高さ比）
            parent: 親ウィジェット
        """
        super().__init__(parent)
        config = get_config()
        self.columns = columns or config.get("display.grid_columns", 2)
        self.tile_size = QSize(*(tile_size or config.get("display.thumbnail_size", (180, 180))))
        self.end_reached_threshold = (end_reached_threshold if end_reached_threshold is not None
                                      else config.get("display.end_reached_threshold", 0.5))

        self.tiles: Dict[str, PhotoTile] = {}
        self.shown_photos: Tuple[Photo, ...] = ()
        self.snapshot: SyncSnapshot = SyncSnapshot()

        self.setup_ui()

    def setup_ui(self):
        """UIコンポーネントを設定"""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self.loading_label = QLabel("読み込み中...")
        self.loading_label.setAlignment(Qt.AlignCenter)
        self.empty_label = QLabel("")
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.empty_label.setStyleSheet("color: #666666; font-size: 16px;")

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.scroll_area.setFrameShape(QFrame.Shape.NoFrame)

        self.content_widget = QWidget()
        content_layout = QVBoxLayout(self.content_widget)
        content_layout.setContentsMargins(5, 5, 5, 5)
        self.grid_layout = QGridLayout()
        self.grid_layout.setSpacing(10)
        content_layout.addLayout(self.grid_layout)

        # フッター（追加読み込み中の表示）
        self.footer_label = QLabel("さらに読み込み中...")
        self.footer_label.setAlignment(Qt.AlignCenter)
        self.footer_label.setVisible(False)
        content_layout.addWidget(self.footer_label)
        content_layout.addStretch()
        self.content_widget.setSizePolicy(QSizePolicy.Policy.Preferred, QSizePolicy.Policy.Minimum)
        self.scroll_area.setWidget(self.content_widget)

        scroll_bar = self.scroll_area.verticalScrollBar()
        scroll_bar.valueChanged.connect(self.check_near_end)
        scroll_bar.rangeChanged.connect(lambda _min, _max: self.check_near_end())

        main_layout.addWidget(self.loading_label)
        main_layout.addWidget(self.empty_label)
        main_layout.addWidget(self.scroll_area)

    @Slot(object)
    def show_snapshot(self, snapshot: SyncSnapshot) -> None:
        """
        スナップショットを描画

        Args:
            snapshot: 同期コントローラーの状態
        """
        self.snapshot = snapshot
        photos = snapshot.photos

        if photos[:len(self.shown_photos)] == self.shown_photos and self.shown_photos:
            self._append_tiles(photos[len(self.shown_photos):])
        elif photos != self.shown_photos:
            if self.tiles:
                self.clear_grid()
            self._append_tiles(photos)
        self.shown_photos = photos

        showing_spinner = snapshot.is_loading_initial and not photos
        self.loading_label.setVisible(showing_spinner)
        self.footer_label.setVisible(snapshot.is_loading_more)

        if snapshot.is_empty:
            query = snapshot.query
            self.empty_label.setText(f'No results for "{query}"' if query else "No images found")
            self.empty_label.setVisible(True)
        else:
            self.empty_label.setVisible(False)
        self.scroll_area.setVisible(not showing_spinner and not snapshot.is_empty)

        if snapshot.phase is SyncPhase.READY:
            # 内容がビューポートに収まる場合は rangeChanged が発行されないため
            QTimer.singleShot(0, self.check_near_end)

    def _append_tiles(self, photos) -> None:
        start = len(self.tiles)
        for offset, photo in enumerate(photos):
            row, col = divmod(start + offset, self.columns)
            tile = PhotoTile(photo, self.tile_size)
            tile.clicked.connect(self.photo_clicked)
            self.grid_layout.addWidget(tile, row, col)
            self.tiles[photo.item_key] = tile
            self.thumbnail_needed.emit(photo)
        if photos:
            logger.debug(f"Added {len(photos)} tiles (total {len(self.tiles)}).")

    def clear_grid(self) -> None:
        """グリッドをクリア"""
        self.tiles.clear()
        self.shown_photos = ()
        for i in reversed(range(self.grid_layout.count())):
            item = self.grid_layout.itemAt(i)
            if item and item.widget():
                item.widget().deleteLater()
            self.grid_layout.takeAt(i)
        self.scroll_area.verticalScrollBar().setValue(0)
        self.grid_cleared.emit()

    @Slot(str, object)
    def receive_thumbnail(self, item_key: str, pixmap: QPixmap) -> None:
        tile = self.tiles.get(item_key)
        if tile is not None:
            tile.set_thumbnail(pixmap)

    @Slot()
    def check_near_end(self) -> None:
        """終端付近なら near_end を発行（エラー表示中は自動では要求しない）"""
        snapshot = self.snapshot
        if snapshot.phase is not SyncPhase.READY or not snapshot.has_more or snapshot.error_message:
            return
        scroll_bar = self.scroll_area.verticalScrollBar()
        if is_near_end(scroll_bar.value(), scroll_bar.maximum(), scroll_bar.pageStep(),
                       self.end_reached_threshold):
            self.near_end.emit()
