#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_bazi_data_cache.py
八字记录缓存：读写、指纹一致性、存储异常
"""

import logging
from unittest.mock import MagicMock

from core.calculators.bazi_core_calculator import MODE_MANUAL
from core.calculators.bazi_record_builder import StandardRecordBuilder
from core.models.birth import BirthInput
from server.config.app_config import EngineConfig
from server.services.bazi_data_cache import BaziDataCache, CACHE_KEY_PREFIX


class TestBaziDataCache:

    def test_round_trip(self, memory_cache, sample_birth):
        record = StandardRecordBuilder.build(sample_birth, mode=MODE_MANUAL)
        entry = memory_cache.set("小明", sample_birth.fingerprint(), record)

        loaded = memory_cache.get("小明")
        assert loaded == entry
        assert loaded.record == record.to_dict()
        assert memory_cache.is_consistent(loaded, sample_birth)
        assert memory_cache.get_consistent("小明", sample_birth).record["bazi"]["text"] == "辛未 壬辰 庚午 壬午"

    def test_entries_are_copies(self, memory_cache, sample_birth):
        """写入和读取都返回独立副本"""
        record = StandardRecordBuilder.build(sample_birth, mode=MODE_MANUAL).to_dict()
        entry = memory_cache.set("小明", sample_birth.fingerprint(), record)
        record["bazi"]["text"] = "changed"
        entry.record["bazi"]["day"]["ganZhi"] = "甲子"

        loaded = memory_cache.get("小明")
        assert loaded.record["bazi"]["text"] == "辛未 壬辰 庚午 壬午"
        assert loaded.record["bazi"]["day"]["ganZhi"] == "庚午"

        loaded.record["bazi"]["day"]["ganZhi"] = "甲子"
        assert memory_cache.get("小明").record["bazi"]["day"]["ganZhi"] == "庚午"

    def test_stale_fingerprint_is_miss(self, memory_cache, sample_birth, caplog):
        memory_cache.set("小明", sample_birth.fingerprint(), {"bazi": {}})
        changed = BirthInput(birth_date="1991-04-30", birth_time="08:00", longitude=116.40, nickname="小明")

        with caplog.at_level(logging.DEBUG, logger="server.services.bazi_data_cache"):
            assert memory_cache.get_consistent("小明", changed) is None
        assert "CacheInconsistencyMiss" in caplog.text
        # 旧记录保留
        assert memory_cache.get("小明") is not None
        assert memory_cache.stats()["inconsistent"] == 1

    def test_last_write_wins(self, memory_cache, sample_birth):
        memory_cache.set("小明", "old", {"v": 1})
        memory_cache.set("小明", sample_birth.fingerprint(), {"v": 2})
        assert memory_cache.get("小明").record == {"v": 2}
        assert memory_cache.identities() == ["小明"]

    def test_invalidate(self, memory_cache):
        memory_cache.set("a", "fp", {})
        memory_cache.invalidate("a")
        assert memory_cache.get("a") is None
        assert memory_cache.stats()["misses"] == 1

    def test_keys_use_prefix(self, memory_cache):
        memory_cache.set("a", "fp", {})
        assert memory_cache.store.keys() == [f"{CACHE_KEY_PREFIX}a"]

    def test_store_failure_is_miss(self, sample_birth):
        store = MagicMock()
        store.get.side_effect = RuntimeError("boom")
        store.set.side_effect = RuntimeError("boom")
        cache = BaziDataCache(store)

        assert cache.get_consistent("小明", sample_birth) is None
        entry = cache.set("小明", sample_birth.fingerprint(), {})
        assert entry.identity_key == "小明"
        assert cache.stats()["errors"] == 2

    def test_from_config_without_redis(self):
        cache = BaziDataCache.from_config(EngineConfig(cache_l1_max_size=10), redis_client=MagicMock())
        assert cache.store.l1.max_size == 10
        assert cache.store.l2.available is False
