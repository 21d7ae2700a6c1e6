"""
リクエストゲートウェイモジュール

Flickr REST API から写真のページを取得し、PageResult に変換するクラスを提供します。
すべての失敗は models.errors の分類に変換して送出します。
"""
import time
from concurrent import futures
from typing import Any, Dict, Optional

import requests

from models import Photo, PageResult, FetchCancelled, FetchTimeout, NetworkError, ApiError
from utils import logger, get_config

SEARCH_METHOD = "flickr.photos.search"
RECENT_METHOD = "flickr.photos.getRecent"

# 期限とキャンセルを確認する間隔（秒）
POLL_INTERVAL_S = 0.05

def parse_page(data: Any, page_number: int) -> PageResult:
    """
    APIのJSON応答をPageResultに変換

    url_s を持たないレコードは除外します。

    Args:
        data: デコード済みのJSON応答
        page_number: 要求したページ番号

    Returns:
        PageResult: 変換結果

    Raises:
        ApiError: stat が ok でない、または応答の形式が不正な場合
    """
    if not isinstance(data, dict):
        raise ApiError("Response body is not a JSON object")

    if data.get("stat") != "ok":
        raise ApiError(data.get("message") or "API Error")

    photos_block = data.get("photos")
    if not isinstance(photos_block, dict):
        raise ApiError("Missing 'photos' block")

    records = photos_block.get("photo", [])
    if not isinstance(records, list):
        raise ApiError("'photos.photo' is not a list")

    try:
        total_pages = max(int(photos_block.get("pages", 1)), 1)
    except (TypeError, ValueError):
        raise ApiError(f"Invalid page count: {photos_block.get('pages')!r}")

    photos = []
    for record in records:
        if not isinstance(record, dict) or not record.get("url_s") or record.get("id") is None:
            continue
        photos.append(Photo.from_dict({
            "id": record["id"],
            "url": record["url_s"],
            "title": record.get("title"),
            "secret": record.get("secret"),
        }))

    return PageResult(photos=tuple(photos), page_number=page_number, total_pages=total_pages)

class FlickrGateway:
    """
    Flickr API クライアント

    fetch_page() は呼び出し元スレッドでブロックします。ワーカーから呼び出してください。
    キャンセルは協調的で、cancellation_token.is_cancelled を通信中も定期的に確認します。
    """

    def __init__(self, session: Optional[requests.Session] = None, base_url: str = None,
                 api_key: str = None, per_page: int = None, timeout_ms: int = None,
                 extras: str = None, safe_search: int = None):
        """
        初期化

        Args:
            session: 使用するHTTPセッション（省略時は新規作成）
            base_url: REST エンドポイント
            api_key: APIキー（省略時は環境変数 FLICKR_API_KEY または設定値）
            per_page: 1ページあたりの件数
            timeout_ms: 1回の取得に許す最大時間（ミリ秒）
            extras: 追加で要求するフィールド
            safe_search: セーフサーチのレベル
        """
        config = get_config()
        self.session = session or requests.Session()
        self.base_url = base_url or config.get("api.base_url")
        self.api_key = api_key if api_key is not None else config.get_api_key()
        self.per_page = per_page or config.get("api.per_page", 20)
        self.timeout_ms = timeout_ms or config.get("api.timeout_ms", 10000)
        self.extras = extras or config.get("api.extras", "url_s,url_m,url_l")
        self.safe_search = safe_search if safe_search is not None else config.get("api.safe_search", 1)

        self._executor = futures.ThreadPoolExecutor(
            max_workers=config.get("workers.max_concurrent", 6), thread_name_prefix="flickr_request")

        if not self.api_key:
            logger.warning("FLICKR_API_KEY が設定されていません。リクエストは失敗する可能性があります。")

    def build_params(self, query: str, page_number: int) -> Dict[str, Any]:
        """リクエストパラメータを生成"""
        return {
            "method": SEARCH_METHOD if query else RECENT_METHOD,
            "per_page": self.per_page,
            "page": page_number,
            "api_key": self.api_key,
            "format": "json",
            "nojsoncallback": 1,
            "extras": self.extras,
            "text": query,
            "safe_search": self.safe_search,
        }

    def fetch_page(self, query: str, page_number: int, cancellation_token=None) -> PageResult:
        """
        1ページ分の写真を取得

        HTTP通信は内部のスレッドで行い、呼び出し元は期限とキャンセルを監視しながら待ちます。
        期限（timeout_ms）を過ぎると通信の完了を待たずに FetchTimeout を送出します。

        Args:
            query: 検索文字列（空文字列はホームフィード）
            page_number: 取得するページ番号（1以上）
            cancellation_token: is_cancelled 属性を持つオブジェクト

        Returns:
            PageResult: 取得結果

        Raises:
            FetchCancelled, FetchTimeout, NetworkError, ApiError
        """
        def raise_if_cancelled():
            if cancellation_token is not None and cancellation_token.is_cancelled:
                raise FetchCancelled(f"Request for {query!r} page {page_number} was cancelled")

        raise_if_cancelled()

        timeout_s = self.timeout_ms / 1000.0
        deadline = time.monotonic() + timeout_s
        logger.debug(f"Fetching page {page_number} (query={query!r})")

        future = self._executor.submit(self._request, self.build_params(query, page_number), timeout_s)
        while not future.done():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise FetchTimeout(f"Request exceeded {self.timeout_ms}ms")
            futures.wait([future], timeout=min(remaining, POLL_INTERVAL_S))
            if not future.done() and cancellation_token is not None and cancellation_token.is_cancelled:
                future.cancel()
                raise_if_cancelled()

        try:
            response = future.result()
        except requests.Timeout as e:
            raise_if_cancelled()
            raise FetchTimeout(str(e)) from e
        except requests.RequestException as e:
            raise_if_cancelled()
            raise NetworkError(str(e)) from e

        raise_if_cancelled()

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"Malformed JSON: {e}") from e

        result = parse_page(data, page_number)
        logger.debug(f"Fetched page {result.page_number}/{result.total_pages}: {len(result.photos)} photos")
        return result

    def _request(self, params: Dict[str, Any], timeout_s: float) -> requests.Response:
        """HTTPリクエストを実行（内部スレッドで実行）"""
        response = self.session.get(self.base_url, params=params, timeout=timeout_s)
        response.raise_for_status()
        return response

    def close(self) -> None:
        """待機中のリクエストを破棄し、セッションを閉じる"""
        self._executor.shutdown(wait=False)
        self.session.close()
