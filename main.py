"""
アプリケーションのエントリーポイント

フォトフィードアプリケーションを起動します。
"""
import sys
import os
from PySide6.QtWidgets import QApplication
from views.main_window import MainWindow
from utils import logger, initialize_file_logging, enable_debug_logging, get_config

def main():
    """アプリケーションのメイン関数"""
    config = get_config()
    app_data_dir = config.get("app.data_dir")

    # ロギングの初期化
    log_dir = os.path.join(app_data_dir, "logs")
    initialize_file_logging(log_dir)

    if "--debug" in sys.argv or config.get("app.debug_mode"):
        enable_debug_logging()
        logger.debug("デバッグモードで起動しました")
        logger.debug(f"アプリケーション設定: データディレクトリ={app_data_dir}")

    logger.info("アプリケーションを起動しています")

    app = QApplication(sys.argv)
    app.setApplicationName(config.get("app.name"))

    app.setStyleSheet("""
        QMainWindow {
            background-color: #ffffff;
        }
        QStatusBar {
            background-color: #ececec;
            color: #333333;
        }
        QToolBar {
            background-color: #ffffff;
            border-bottom: 1px solid #d0d0d0;
        }
        QLineEdit {
            background-color: #f0f0f0;
            border: none;
            border-radius: 12px;
            padding: 4px 12px;
            min-width: 240px;
        }
        QLabel[imageLabel="true"] {
            border-radius: 8px;
            background-color: #f5f5f5;
            color: #666666;
        }
        QScrollArea {
            border: none;
            background-color: #ffffff;
        }
    """)

    window_size = config.get("app.window_size")

    logger.info("メインウィンドウを作成しています")
    window = MainWindow()
    window.resize(*window_size)
    window.show()

    logger.info("イベントループを開始します")
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
