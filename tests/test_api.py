import unittest

from fastapi.testclient import TestClient

from wbgt_service.errors import ConfigurationError
from wbgt_service.main import app as fastapi_app


class StubCache:
    def __init__(self, result=None, exc=None):
        self.result = result or {}
        self.exc = exc
        self.calls = []

    def get_signal_map(self, station_id=None):
        self.calls.append(station_id)
        if self.exc:
            raise self.exc
        return self.result


class TestApi(unittest.TestCase):
    def setUp(self):
        import wbgt_service.api as api_mod

        self.api_mod = api_mod
        self._orig_cache = api_mod.SIGNAL_CACHE
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        self.api_mod.SIGNAL_CACHE = self._orig_cache

    def test_wbgt_returns_signal_map(self):
        stub = StubCache({
            "WBGT_20250709_15": "30",
            "WBGT_20250709_18": "29",
            "WBGT_20250710_15": None,
            "WBGT_20250710_18": None,
        })
        self.api_mod.SIGNAL_CACHE = stub

        resp = self.client.get("/v1/wbgt", params={"point": "62091"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["WBGT_20250709_15"], "30")
        self.assertIsNone(resp.json()["WBGT_20250710_18"])
        self.assertIn("max-age=", resp.headers["cache-control"])
        self.assertEqual(stub.calls, ["62091"])

    def test_blank_point_uses_default_station(self):
        stub = StubCache()
        self.api_mod.SIGNAL_CACHE = stub
        self.client.get("/v1/wbgt", params={"point": "  "})
        self.client.get("/v1/wbgt")
        self.assertEqual(stub.calls, [None, None])

    def test_configuration_error_maps_to_503(self):
        self.api_mod.SIGNAL_CACHE = StubCache(exc=ConfigurationError("no store"))
        resp = self.client.get("/v1/wbgt")
        self.assertEqual(resp.status_code, 503)

    def test_cors_header_present(self):
        self.api_mod.SIGNAL_CACHE = StubCache()
        resp = self.client.get("/v1/wbgt", headers={"Origin": "https://example.com"})
        self.assertEqual(resp.headers.get("access-control-allow-origin"), "*")

    def test_signal_cache_built_from_settings(self):
        from wbgt_service.config import settings

        cache = self._orig_cache
        self.assertEqual(cache.url_template, settings.feed_url_template)
        self.assertEqual(cache.timeout, settings.request_timeout_seconds)
        self.assertEqual(cache.default_station_id, settings.station_id)

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
