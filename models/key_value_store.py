"""
キー・バリューストアモジュール

文字列のキーと値を永続化する単純なストアを提供します。
ホームフィードのキャッシュはこのストアの上に構築されます。
"""
import os
import json
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple

from .errors import CacheError
from utils import logger

class KeyValueStore(ABC):
    """文字列キー・文字列値のストアの抽象クラス"""

    @abstractmethod
    def multi_get(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        pass

    @abstractmethod
    def multi_set(self, pairs: Iterable[Tuple[str, str]]) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass

class JsonFileStore(KeyValueStore):
    """
    1つのJSONファイルに全キーを保存するストア

    書き込みは一時ファイルへ出力してから置き換えるため、途中で失敗しても既存の内容は壊れません。
    読み書きの失敗はすべて CacheError として送出します。
    """

    def __init__(self, path: str):
        """
        初期化

        Args:
            path: 保存先のJSONファイルのパス
        """
        self.path = path
        self._lock = threading.RLock()

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheError(f"ストアの読み込みに失敗: {self.path} - {e}") from e
        if not isinstance(data, dict):
            raise CacheError(f"ストアの形式が不正です: {self.path}")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp_path = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CacheError(f"ストアへの書き込みに失敗: {self.path} - {e}") from e

    def multi_get(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        with self._lock:
            data = self._read_all()
            return {key: data.get(key) for key in keys}

    def multi_set(self, pairs: Iterable[Tuple[str, str]]) -> None:
        with self._lock:
            data = self._read_all()
            for key, value in pairs:
                data[key] = str(value)
            self._write_all(data)
            logger.debug(f"ストアを更新: {self.path}")

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)
