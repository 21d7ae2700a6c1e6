"""
リトライバーモジュール

読み込みに失敗して表示する写真がないときに、メッセージと再試行ボタンを表示するバーを提供します。
"""
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton
from PySide6.QtCore import Signal

from models import SyncSnapshot

class RetryBar(QFrame):
    """エラーメッセージと RETRY ボタンを表示するバー"""
    retry_requested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("""
            RetryBar {
                background-color: #323232;
            }
            QLabel {
                color: #ffffff;
                font-weight: 500;
            }
            QPushButton {
                color: #BB86FC;
                font-weight: bold;
                background: transparent;
                border: none;
            }
        """)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        self.message_label = QLabel("Network failure.")
        self.retry_button = QPushButton("RETRY")
        self.retry_button.clicked.connect(self.retry_requested)
        layout.addWidget(self.message_label, 1)
        layout.addWidget(self.retry_button)

        self.setVisible(False)

    def show_snapshot(self, snapshot: SyncSnapshot) -> None:
        """エラーかつ写真がない場合のみ表示"""
        if snapshot.show_retry:
            self.message_label.setText(snapshot.error_message or "Network failure.")
        self.setVisible(snapshot.show_retry)
