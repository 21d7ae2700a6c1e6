"""
FlickrGateway と parse_page のテスト

HTTP通信は偽のセッションで置き換えます。
"""
import os
import sys
import shutil
import threading
import time
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import requests

from fakes import use_temp_config
from controllers import FlickrGateway, parse_page
from controllers.request_gateway import SEARCH_METHOD, RECENT_METHOD
from models import ApiError, FetchCancelled, FetchTimeout, NetworkError, MALFORMED_RESPONSE_MESSAGE

def api_payload(records, pages=3, stat="ok"):
    return {"stat": stat, "photos": {"page": 1, "pages": pages, "photo": records}}

def record(photo_id, url_s="https://live.staticflickr.com/1/{}.jpg", title="title"):
    return {
        "id": photo_id,
        "secret": f"sec{photo_id}",
        "server": "1",
        "farm": 1,
        "title": title,
        "url_s": url_s.format(photo_id) if url_s else None,
    }

class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.payload

class FakeSession:
    def __init__(self, response=None, exception=None):
        self.response = response
        self.exception = exception
        self.requests = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if self.exception is not None:
            raise self.exception
        return self.response

    def close(self):
        self.closed = True

class SlowSession(FakeSession):
    """release されるか delay_s が経過するまで応答しないセッション"""

    def __init__(self, response, delay_s):
        super().__init__(response)
        self.delay_s = delay_s
        self.released = threading.Event()

    def get(self, url, params=None, timeout=None):
        self.released.wait(self.delay_s)
        return super().get(url, params=params, timeout=timeout)

class CancelledToken:
    is_cancelled = True

class SwitchableToken:
    is_cancelled = False

class TestParsePage(unittest.TestCase):
    """parse_page のテストクラス"""

    def test_filters_records_without_small_url(self):
        data = api_payload([record("1"), record("2", url_s=None), record("3")])

        result = parse_page(data, 2)

        self.assertEqual([p.id for p in result.photos], ["1", "3"])
        self.assertEqual(result.page_number, 2)
        self.assertEqual(result.total_pages, 3)
        self.assertTrue(result.has_more)
        self.assertEqual(result.photos[0].secret, "sec1")
        self.assertEqual(result.photos[0].url, "https://live.staticflickr.com/1/1.jpg")

    def test_blank_title_becomes_untitled(self):
        result = parse_page(api_payload([record("1", title="")]), 1)
        self.assertEqual(result.photos[0].title, "Untitled")

    def test_zero_pages_means_no_more(self):
        result = parse_page(api_payload([], pages=0), 1)
        self.assertEqual(result.total_pages, 1)
        self.assertFalse(result.has_more)

    def test_non_ok_stat_is_api_error(self):
        data = {"stat": "fail", "code": 100, "message": "Invalid API Key"}
        with self.assertRaises(ApiError) as ctx:
            parse_page(data, 1)
        self.assertIn("Invalid API Key", str(ctx.exception))
        self.assertEqual(ctx.exception.user_message, MALFORMED_RESPONSE_MESSAGE)

    def test_missing_photos_block_is_api_error(self):
        with self.assertRaises(ApiError):
            parse_page({"stat": "ok"}, 1)
        with self.assertRaises(ApiError):
            parse_page(["not", "a", "dict"], 1)

class TestFlickrGateway(unittest.TestCase):
    """FlickrGateway のテストクラス"""

    def setUp(self):
        self.temp_dir = use_temp_config()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make_gateway(self, session):
        return FlickrGateway(session=session, base_url="https://api.example.com/rest/",
                             api_key="test-key", timeout_ms=10000)

    def test_recent_and_search_params(self):
        gateway = self.make_gateway(FakeSession())

        recent = gateway.build_params("", 1)
        search = gateway.build_params("cats", 3)

        self.assertEqual(recent["method"], RECENT_METHOD)
        self.assertEqual(search["method"], SEARCH_METHOD)
        self.assertEqual(search["text"], "cats")
        self.assertEqual(search["page"], 3)
        self.assertEqual(search["per_page"], 20)
        self.assertEqual(search["format"], "json")
        self.assertEqual(search["nojsoncallback"], 1)
        self.assertEqual(search["safe_search"], 1)
        self.assertEqual(search["extras"], "url_s,url_m,url_l")
        self.assertEqual(search["api_key"], "test-key")

    def test_fetch_page_success(self):
        session = FakeSession(FakeResponse(api_payload([record("1"), record("2")], pages=5)))
        gateway = self.make_gateway(session)

        result = gateway.fetch_page("dogs", 2)

        self.assertEqual(len(result.photos), 2)
        self.assertEqual(result.page_number, 2)
        self.assertEqual(result.total_pages, 5)
        self.assertEqual(session.requests[0]["timeout"], 10.0)
        self.assertEqual(session.requests[0]["url"], "https://api.example.com/rest/")

    def test_timeout_maps_to_fetch_timeout(self):
        gateway = self.make_gateway(FakeSession(exception=requests.Timeout("read timed out")))
        with self.assertRaises(FetchTimeout):
            gateway.fetch_page("", 1)

    def test_connection_error_maps_to_network_error(self):
        gateway = self.make_gateway(FakeSession(exception=requests.ConnectionError("refused")))
        with self.assertRaises(NetworkError):
            gateway.fetch_page("", 1)

    def test_http_error_maps_to_network_error(self):
        gateway = self.make_gateway(FakeSession(FakeResponse(status_code=503)))
        with self.assertRaises(NetworkError):
            gateway.fetch_page("", 1)

    def test_invalid_json_maps_to_api_error(self):
        gateway = self.make_gateway(FakeSession(FakeResponse(invalid_json=True)))
        with self.assertRaises(ApiError):
            gateway.fetch_page("", 1)

    def test_cancelled_token_skips_request(self):
        session = FakeSession(FakeResponse(api_payload([record("1")])))
        gateway = self.make_gateway(session)

        with self.assertRaises(FetchCancelled):
            gateway.fetch_page("", 1, CancelledToken())
        self.assertEqual(session.requests, [])

    def test_slow_server_fails_at_wall_clock_limit(self):
        session = SlowSession(FakeResponse(api_payload([record("1")])), delay_s=2.0)
        self.addCleanup(session.released.set)
        gateway = FlickrGateway(session=session, base_url="https://api.example.com/rest/",
                                api_key="test-key", timeout_ms=300)

        started = time.monotonic()
        with self.assertRaises(FetchTimeout):
            gateway.fetch_page("", 1)
        elapsed = time.monotonic() - started

        self.assertGreaterEqual(elapsed, 0.25)
        self.assertLess(elapsed, 1.0, "期限を過ぎても応答を待ち続けています")

    def test_cancel_during_request_returns_promptly(self):
        session = SlowSession(FakeResponse(api_payload([record("1")])), delay_s=2.0)
        self.addCleanup(session.released.set)
        gateway = self.make_gateway(session)
        token = SwitchableToken()
        timer = threading.Timer(0.1, lambda: setattr(token, "is_cancelled", True))
        timer.start()
        self.addCleanup(timer.cancel)

        started = time.monotonic()
        with self.assertRaises(FetchCancelled):
            gateway.fetch_page("", 1, token)

        self.assertLess(time.monotonic() - started, 1.0)

    def test_close_closes_session(self):
        session = FakeSession()
        gateway = self.make_gateway(session)

        gateway.close()

        self.assertTrue(session.closed)

if __name__ == '__main__':
    unittest.main()
