"""
エラー分類モジュール

ネットワーク取得とキャッシュ操作で発生するエラーの分類を提供します。
ユーザーに表示するメッセージは汎用的なものに限定し、生のエラー内容は含めません。
"""

NETWORK_FAILURE_MESSAGE = "Network failure."
MALFORMED_RESPONSE_MESSAGE = "Unexpected response from server."

class FetchError(Exception):
    """ページ取得失敗の基底クラス"""
    kind = "error"
    user_message = NETWORK_FAILURE_MESSAGE

class FetchCancelled(FetchError):
    """より新しい操作に置き換えられた（ユーザーには表示しない）"""
    kind = "cancelled"
    user_message = None

class FetchTimeout(FetchError):
    """一定時間内に応答がなかった"""
    kind = "timeout"

class NetworkError(FetchError):
    """通信・接続の失敗"""
    kind = "network"

class ApiError(FetchError):
    """不正なペイロード、または stat が ok でない応答"""
    kind = "api"
    user_message = MALFORMED_RESPONSE_MESSAGE

class CacheError(Exception):
    """キャッシュの読み書き失敗（常に致命的ではない）"""
    pass

__all__ = [
    'FetchError', 'FetchCancelled', 'FetchTimeout', 'NetworkError', 'ApiError', 'CacheError',
    'NETWORK_FAILURE_MESSAGE', 'MALFORMED_RESPONSE_MESSAGE',
]
