#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_cache_multi_level.py
L1MemoryCache / L2RedisCache / MultiLevelCache 单元测试
"""

import json
import threading
import time

import pytest
import redis

from server.utils.cache_multi_level import L1MemoryCache, L2RedisCache, MultiLevelCache


# ════════════════════ L1MemoryCache ════════════════════


class TestL1MemoryCache:

    def test_set_and_get(self):
        cache = L1MemoryCache(max_size=10, ttl=300)
        cache.set("k1", {"a": 1})
        assert cache.get("k1") == {"a": 1}

    def test_get_miss_returns_none(self):
        assert L1MemoryCache().get("nonexist") is None

    def test_ttl_expiry(self):
        cache = L1MemoryCache(max_size=10, ttl=0.05)
        cache.set("k", "v")
        assert cache.get("k") == "v"
        time.sleep(0.1)
        assert cache.get("k") is None

    def test_max_size_eviction(self):
        cache = L1MemoryCache(max_size=3, ttl=300)
        for key in ("a", "b", "c"):
            cache.set(key, key)
            time.sleep(0.001)
        cache.set("d", 4)
        assert cache.get("a") is None
        assert cache.get("d") == 4
        assert cache.stats()["size"] == 3

    def test_keys_pattern(self):
        cache = L1MemoryCache()
        cache.set("bazi_record:a", 1)
        cache.set("bazi_record:b", 2)
        cache.set("other", 3)
        assert sorted(cache.keys("bazi_record:*")) == ["bazi_record:a", "bazi_record:b"]

    def test_delete_and_clear(self):
        cache = L1MemoryCache()
        cache.set("x", 1)
        cache.set("y", 2)
        cache.delete("x")
        assert cache.get("x") is None
        cache.clear()
        assert cache.keys() == []

    def test_concurrent_writes(self):
        cache = L1MemoryCache(max_size=1000)

        def writer(prefix):
            for i in range(100):
                cache.set(f"{prefix}:{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache.keys()) == 500


# ════════════════════ L2RedisCache ════════════════════


class TestL2RedisCache:

    def test_unavailable(self):
        cache = L2RedisCache(redis_client=None)
        assert cache.get("k") is None
        assert cache.keys() == []
        assert cache.stats() == {"status": "unavailable"}

    def test_set_uses_setex_with_json(self, mock_redis_client):
        cache = L2RedisCache(redis_client=mock_redis_client, ttl=60)
        cache.set("k", {"年柱": "辛未"})
        key, ttl, payload = mock_redis_client.setex.call_args[0]
        assert (key, ttl) == ("k", 60)
        assert json.loads(payload) == {"年柱": "辛未"}

    def test_get_decodes_json(self, mock_redis_client):
        mock_redis_client.get.return_value = json.dumps({"a": 1}).encode("utf-8")
        assert L2RedisCache(redis_client=mock_redis_client).get("k") == {"a": 1}

    def test_redis_error_is_miss(self, mock_redis_client):
        mock_redis_client.get.side_effect = redis.ConnectionError("down")
        assert L2RedisCache(redis_client=mock_redis_client).get("k") is None

    def test_keys_decodes_bytes(self, mock_redis_client):
        mock_redis_client.scan_iter.return_value = iter([b"bazi_record:a", "bazi_record:b"])
        keys = L2RedisCache(redis_client=mock_redis_client).keys("bazi_record:*")
        assert keys == ["bazi_record:a", "bazi_record:b"]
        mock_redis_client.scan_iter.assert_called_once_with(match="bazi_record:*")


# ════════════════════ MultiLevelCache ════════════════════


class TestMultiLevelCache:

    def test_l2_hit_backfills_l1(self, mock_redis_client):
        mock_redis_client.get.return_value = json.dumps({"v": 1})
        cache = MultiLevelCache(redis_client=mock_redis_client)
        assert cache.get("k") == {"v": 1}
        assert cache.l1.get("k") == {"v": 1}

    def test_set_writes_both_levels(self, mock_redis_client):
        cache = MultiLevelCache(redis_client=mock_redis_client)
        cache.set("k", {"v": 2})
        assert cache.l1.get("k") == {"v": 2}
        assert mock_redis_client.setex.called

    def test_keys_union(self, mock_redis_client):
        mock_redis_client.scan_iter.return_value = iter([b"p:2", b"p:1"])
        cache = MultiLevelCache(redis_client=mock_redis_client)
        cache.set("p:1", 1)
        cache.set("p:3", 3)
        assert cache.keys("p:*") == ["p:1", "p:2", "p:3"]

    @pytest.mark.parametrize("use_redis", [False, True])
    def test_stats(self, use_redis, mock_redis_client):
        mock_redis_client.info.return_value = {"used_memory_human": "1M", "connected_clients": 2}
        cache = MultiLevelCache(redis_client=mock_redis_client if use_redis else None)
        stats = cache.stats()
        assert stats["l1"]["size"] == 0
        assert stats["l2"]["status"] == ("available" if use_redis else "unavailable")
