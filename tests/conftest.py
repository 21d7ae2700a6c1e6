"""pytest 設定: ディスプレイのない環境でも Qt を起動できるようにする"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
