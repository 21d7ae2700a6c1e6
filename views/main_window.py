"""
メインウィンドウモジュール

検索欄、写真グリッド、リトライバーを配置し、同期コントローラーと接続します。
"""
from PySide6.QtWidgets import (
    QMainWindow, QStatusBar, QToolBar, QStyle, QVBoxLayout, QWidget,
    QLineEdit, QPushButton, QMessageBox
)
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtCore import Slot, QTimer

from models import JsonFileStore, PhotoCache, SyncSnapshot
from controllers import FlickrGateway, SyncController, ThumbnailLoader, WorkerManager
from utils import logger, get_config
from .photo_grid_view import PhotoGridView
from .retry_bar import RetryBar

class MainWindow(QMainWindow):
    def __init__(self, controller: SyncController = None):
        super().__init__()
        self.config = get_config()

        logger.info("Main window initialized.")
        self.worker_manager = WorkerManager()
        if controller is None:
            store = JsonFileStore(self.config.get("cache.store_file"))
            controller = SyncController(FlickrGateway(), PhotoCache(store), self.worker_manager)
        self.controller = controller
        self.thumbnail_loader = ThumbnailLoader(self.worker_manager)

        self.setup_ui()
        self.setup_connections()

        # 初回表示（キャッシュがあれば先に表示される）
        QTimer.singleShot(0, lambda: self.controller.start(""))

    def setup_ui(self):
        logger.debug("Setting up UI components.")
        self.setWindowTitle(self.config.get("app.name"))

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.dismiss_button = QPushButton("閉じる")
        self.dismiss_button.setVisible(False)
        self.status_bar.addPermanentWidget(self.dismiss_button)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        self.grid_view = PhotoGridView()
        self.retry_bar = RetryBar()
        layout.addWidget(self.grid_view, 1)
        layout.addWidget(self.retry_bar)
        self.setCentralWidget(central)

        self.create_toolbars()

    def create_toolbars(self):
        """ツールバーを作成"""
        self.main_toolbar = QToolBar("メインツールバー")
        self.main_toolbar.setMovable(False)
        self.addToolBar(self.main_toolbar)

        self.search_action = QAction(self.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogContentsView), "検索", self)
        self.search_action.setStatusTip("入力した文字列で検索します")
        self.main_toolbar.addAction(self.search_action)

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search Flickr...")
        self.search_edit.setClearButtonEnabled(True)
        self.main_toolbar.addWidget(self.search_edit)

        self.main_toolbar.addSeparator()
        self.refresh_action = QAction(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload), "更新", self)
        self.refresh_action.setShortcut(QKeySequence("F5"))
        self.refresh_action.setStatusTip("現在の表示を更新します (F5)")
        self.main_toolbar.addAction(self.refresh_action)

    def setup_connections(self):
        logger.debug("Setting up signal/slot connections.")
        self.controller.state_changed.connect(self.on_state_changed)

        self.search_edit.textChanged.connect(self.controller.set_query_text)
        self.search_edit.returnPressed.connect(self.on_search_submitted)
        self.search_action.triggered.connect(self.on_search_action)
        self.refresh_action.triggered.connect(self.controller.refresh)

        self.grid_view.near_end.connect(self.controller.load_more)
        self.grid_view.thumbnail_needed.connect(self.thumbnail_loader.request)
        self.grid_view.grid_cleared.connect(self.thumbnail_loader.reset)
        self.grid_view.photo_clicked.connect(self.on_photo_clicked)
        self.thumbnail_loader.thumbnail_ready.connect(self.grid_view.receive_thumbnail)

        self.retry_bar.retry_requested.connect(self.controller.retry)
        self.dismiss_button.clicked.connect(self.controller.dismiss_error)

    @Slot(object)
    def on_state_changed(self, snapshot: SyncSnapshot):
        self.grid_view.show_snapshot(snapshot)
        self.retry_bar.show_snapshot(snapshot)

        inline_error = bool(snapshot.error_message) and not snapshot.show_retry
        self.dismiss_button.setVisible(inline_error)
        if inline_error:
            self.status_bar.showMessage(f"エラー: {snapshot.error_message}")
        elif snapshot.is_loading_initial:
            self.status_bar.showMessage("読み込み中...")
        elif snapshot.is_loading_more:
            self.status_bar.showMessage("さらに読み込み中...")
        elif snapshot.photos:
            label = f"「{snapshot.query}」の検索結果" if snapshot.is_searching else "最近の写真"
            self.status_bar.showMessage(f"{label}: {len(snapshot.photos)}枚")
        else:
            self.status_bar.clearMessage()

    @Slot()
    def on_search_submitted(self):
        self.controller.submit_query(self.search_edit.text())

    @Slot()
    def on_search_action(self):
        """検索文字列があれば送信し、なければ検索欄にフォーカス"""
        if self.search_edit.text().strip():
            self.on_search_submitted()
        else:
            self.search_edit.setFocus()

    @Slot(str)
    def on_photo_clicked(self, item_key: str):
        tile = self.grid_view.tiles.get(item_key)
        if tile is not None:
            self.status_bar.showMessage(tile.photo.title, 5000)

    def closeEvent(self, event):
        logger.info("Close event received. Shutting down workers...")
        try:
            self.controller.dispose()
            self.thumbnail_loader.close()
            cancelled_count = self.worker_manager.cancel_all()
            logger.info(f"Attempted to cancel {cancelled_count} workers.")
            self.worker_manager.wait_for_all(self.config.get("workers.shutdown_timeout_ms", 2000))
            self.controller.gateway.close()
            logger.info(f"Photo cache stats: {self.controller.cache.get_stats()}")
        except RuntimeError as e:
            logger.exception("Error during shutdown.")
            QMessageBox.critical(self, "終了エラー", f"終了処理中にエラーが発生しました:\n{e}")
        event.accept()
