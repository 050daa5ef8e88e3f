import datetime as dt
import unittest

from wbgt_service.errors import StoreReadError, StoreWriteError
from wbgt_service.signal_store.redis import RedisSignalStore


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def get(self, key):
        self.ops.append(("get", key))

    def pttl(self, key):
        self.ops.append(("pttl", key))

    def execute(self):
        out = []
        for op, key in self.ops:
            out.append(self.client.get(key) if op == "get" else self.client.pttl(key))
        return out


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value.encode("utf-8")
        if ex is None:
            self.expires.pop(key, None)
        else:
            self.expires[key] = ex

    def get(self, key):
        self._check()
        return self.store.get(key)

    def pttl(self, key):
        if key not in self.store:
            return -2
        if key not in self.expires:
            return -1
        return self.expires[key] * 1000

    def pipeline(self):
        self._check()
        return FakePipeline(self)


class TestRedisSignalStore(unittest.TestCase):
    def test_put_sets_ttl_and_get_decodes(self):
        client = FakeRedis()
        store = RedisSignalStore(client)
        store.put("WBGT_20250709_15", "30", 86400)
        self.assertEqual(client.expires["WBGT_20250709_15"], 86400)
        self.assertEqual(store.get("WBGT_20250709_15"), "30")
        self.assertIsNone(store.get("missing"))

    def test_get_with_expiration_reports_absolute_expiry(self):
        client = FakeRedis()
        store = RedisSignalStore(client)
        store.put("k", "29.5", 60)
        before = dt.datetime.now(dt.timezone.utc)
        entry = store.get_with_expiration("k")
        self.assertEqual(entry.value, "29.5")
        self.assertGreaterEqual(entry.expires_at, before + dt.timedelta(seconds=59))
        self.assertLessEqual(entry.expires_at, dt.datetime.now(dt.timezone.utc) + dt.timedelta(seconds=60))

    def test_expiry_anchored_to_injected_clock(self):
        client = FakeRedis()
        store = RedisSignalStore(client, clock=lambda: 1752000000.0)
        store.put("k", "30", 86400)
        entry = store.get_with_expiration("k")
        self.assertEqual(entry.expires_at, dt.datetime.fromtimestamp(1752000000.0 + 86400, tz=dt.timezone.utc))

    def test_missing_and_persistent_keys_have_unknown_expiry(self):
        client = FakeRedis()
        store = RedisSignalStore(client)
        client.set("persistent", "25")
        self.assertIsNone(store.get_with_expiration("persistent").expires_at)
        self.assertEqual(store.get_with_expiration("persistent").value, "25")
        missing = store.get_with_expiration("missing")
        self.assertIsNone(missing.value)
        self.assertIsNone(missing.expires_at)

    def test_client_errors_are_wrapped(self):
        client = FakeRedis()
        client.fail = True
        store = RedisSignalStore(client)
        with self.assertRaises(StoreReadError):
            store.get("k")
        with self.assertRaises(StoreReadError):
            store.get_with_expiration("k")
        with self.assertRaises(StoreWriteError) as ctx:
            store.put("k", "v", 10)
        self.assertEqual(ctx.exception.key, "k")


if __name__ == "__main__":
    unittest.main()
