"""
設定管理モジュール

アプリケーション全体の設定を一元管理するためのクラスとユーティリティを提供します。
"""
import os
import copy
import json
from typing import Any, Dict, Optional

from .logger import logger

class Config:
    """アプリケーション設定を管理するクラス"""

    # デフォルト設定値
    DEFAULT_CONFIG = {
        # アプリケーション全般
        "app": {
            "name": "フォトフィード",
            "version": "0.1.0",
            "data_dir": "",  # 初期化時に設定される
            "window_size": (900, 700),
            "debug_mode": False,
        },

        # Flickr API 関連
        "api": {
            "base_url": "https://api.flickr.com/services/rest/",
            "api_key": "",  # 環境変数 FLICKR_API_KEY が優先される
            "per_page": 20,
            "timeout_ms": 10000,  # リクエストの最大待ち時間（ms）
            "extras": "url_s,url_m,url_l",
            "safe_search": 1,
        },

        # ホームフィードのキャッシュ
        "cache": {
            "duration_ms": 5 * 60 * 1000,  # キャッシュの有効期間（ms）
            "data_key": "cached_flickr_home_data",
            "timestamp_key": "cached_flickr_data_expiry",
            "store_file": "",  # 初期化時に設定される
        },

        # 検索入力
        "search": {
            "debounce_ms": 800,  # 入力が止まってから検索するまでの遅延（ms）
            "min_length": 2,     # 自動検索を行う最小文字数
        },

        # 表示関連
        "display": {
            "grid_columns": 2,
            "thumbnail_size": (180, 180),
            "end_reached_threshold": 0.5,  # 残りスクロール量（ビューポート高さ比）
        },

        # ワーカー関連
        "workers": {
            "max_concurrent": 6,
            "shutdown_timeout_ms": 2000,  # 終了時にワーカーの完了を待つ最大時間（ms）
        },
    }

    def __init__(self, config_file: Optional[str] = None, app_data_dir: Optional[str] = None):
        """
        設定を初期化

        Args:
            config_file: 設定ファイルのパス（省略時はデフォルト位置）
            app_data_dir: アプリケーションデータディレクトリ（省略時は ~/.photo_feed）
        """
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)

        self._app_data_dir = app_data_dir or os.path.join(os.path.expanduser("~"), ".photo_feed")
        os.makedirs(self._app_data_dir, exist_ok=True)

        self._config_file = config_file or os.path.join(self._app_data_dir, "config.json")

        self._apply_dynamic_paths()

        self.load()

        logger.debug(f"設定を初期化: {self._config_file}")

    def _apply_dynamic_paths(self) -> None:
        """データディレクトリに依存する値を設定"""
        self._config["app"]["data_dir"] = self._app_data_dir
        self._config["cache"]["store_file"] = os.path.join(self._app_data_dir, "storage.json")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        設定値を取得

        Args:
            key_path: ドット区切りのキーパス (例: "cache.duration_ms")
            default: キーが存在しない場合のデフォルト値

        Returns:
            設定値、またはデフォルト値
        """
        current = self._config
        for part in key_path.split('.'):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def set(self, key_path: str, value: Any) -> bool:
        """
        設定値を変更

        Args:
            key_path: ドット区切りのキーパス
            value: 新しい設定値

        Returns:
            bool: 成功した場合はTrue
        """
        parts = key_path.split('.')
        current = self._config

        try:
            for part in parts[:-1]:
                if part not in current:
                    current[part] = {}
                current = current[part]

            current[parts[-1]] = value
            logger.debug(f"設定を更新: {key_path} = {value}")
            return True
        except (TypeError, KeyError) as e:
            logger.error(f"設定値の更新エラー: {key_path} = {value} - {e}")
            return False

    def get_api_key(self) -> str:
        """APIキーを取得（環境変数 FLICKR_API_KEY を優先）"""
        return os.environ.get("FLICKR_API_KEY") or self.get("api.api_key", "")

    def load(self) -> bool:
        """
        設定ファイルから設定を読み込む

        Returns:
            bool: 成功した場合はTrue
        """
        if not os.path.exists(self._config_file):
            logger.info(f"設定ファイルが存在しないためデフォルト設定を使用: {self._config_file}")
            self.save()
            return False

        try:
            with open(self._config_file, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)

            self._merge_config(self._config, loaded_config)
            logger.info(f"設定を読み込みました: {self._config_file}")
            return True
        except (OSError, ValueError) as e:
            logger.error(f"設定ファイルの読み込みエラー: {self._config_file} - {e}")
            return False

    def save(self) -> bool:
        """
        現在の設定をファイルに保存（一時ファイルに書いてから置き換える）

        Returns:
            bool: 成功した場合はTrue
        """
        tmp_path = f"{self._config_file}.tmp"
        try:
            os.makedirs(os.path.dirname(self._config_file), exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self._config, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._config_file)
        except OSError as e:
            logger.error(f"設定ファイルの保存エラー: {self._config_file} - {e}")
            return False

        logger.info(f"設定を保存しました: {self._config_file}")
        return True

    def reset(self) -> None:
        """設定をデフォルト値にリセット"""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self._apply_dynamic_paths()

        logger.info("設定をデフォルト値にリセットしました")
        self.save()

    def _merge_config(self, target: Dict, source: Dict) -> None:
        """
        設定を再帰的にマージ

        JSONではタプルがリストとして保存されるため、デフォルト値がタプルの項目はタプルに戻します。

        Args:
            target: マージ先の辞書
            source: マージ元の辞書
        """
        for key, value in source.items():
            current = target.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                self._merge_config(current, value)
            elif isinstance(current, tuple) and isinstance(value, list):
                target[key] = tuple(value)
            else:
                target[key] = value

# 設定インスタンスのシングルトン
_instance = None

def get_config() -> Config:
    """
    設定インスタンスを取得

    Returns:
        Config: 設定インスタンス
    """
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance

def reset_config() -> None:
    """設定をデフォルト値にリセット"""
    get_config().reset()

__all__ = ['Config', 'get_config', 'reset_config']
