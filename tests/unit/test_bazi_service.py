#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_bazi_service.py
八字服务：缓存命中、指纹变更、后台失败降级
"""

import pytest

from core.errors import InvalidDateFormatError
from core.models.birth import BirthInput
from server.services.bazi_compute_dispatcher import BaziComputeDispatcher
from server.services.bazi_service import BaziService


@pytest.fixture
def sync_service(memory_cache):
    """不使用 Worker 的服务（manual 模式，结果稳定）"""
    return BaziService(memory_cache, BaziComputeDispatcher(None), default_mode="manual")


class TestStandardRecordSync:

    def test_compute_then_cache_hit(self, sync_service, sample_birth):
        first = sync_service.get_standard_record_sync(None, sample_birth)
        assert first["meta"]["dataSource"] == "calculate"
        assert first["meta"]["identityKey"] == "小明"
        assert first["bazi"]["text"] == "辛未 壬辰 庚午 壬午"

        second = sync_service.get_standard_record_sync(None, sample_birth)
        assert second["meta"]["dataSource"] == "cache"
        assert second["bazi"] == first["bazi"]
        assert second["meta"]["calculatedAt"] == first["meta"]["calculatedAt"]

    def test_changed_birth_params_recompute(self, sync_service, sample_birth):
        sync_service.get_standard_record_sync("user-1", sample_birth)
        changed = BirthInput(birth_date="1991-04-30", birth_time="08:00", longitude=116.40)

        record = sync_service.get_standard_record_sync("user-1", changed)

        assert record["meta"]["dataSource"] == "calculate"
        assert record["bazi"]["hour"]["gan"] + record["bazi"]["hour"]["zhi"] == "庚辰"
        assert sync_service.cache.get("user-1").birth_params_fingerprint == changed.fingerprint()

    def test_cached_record_not_shared(self, sync_service, sample_birth):
        sync_service.get_standard_record_sync(None, sample_birth)
        hit = sync_service.get_standard_record_sync(None, sample_birth)
        hit["bazi"]["day"]["ganZhi"] = "甲子"
        again = sync_service.get_standard_record_sync(None, sample_birth)
        assert again["bazi"]["day"]["ganZhi"] == "庚午"

    def test_computed_record_not_shared_with_cache(self, sync_service, sample_birth):
        """修改首次计算返回的记录不影响缓存"""
        first = sync_service.get_standard_record_sync(None, sample_birth)
        first["bazi"]["day"]["ganZhi"] = "甲子"

        assert sync_service.cache.get("小明").record["bazi"]["day"]["ganZhi"] == "庚午"
        again = sync_service.get_standard_record_sync(None, sample_birth)
        assert again["meta"]["dataSource"] == "cache"
        assert again["bazi"]["day"]["ganZhi"] == "庚午"

    def test_fallback_record(self, sync_service):
        record = sync_service.fallback_record()
        assert record["bazi"]["text"] == "甲子 乙丑 丙寅 丁卯"
        assert record["meta"]["dataSource"] == "fallback"


class TestStandardRecordAsync:

    async def test_timeout_recovers_with_sync_path(self, memory_cache, sample_birth, scripted_worker):
        dispatcher = BaziComputeDispatcher(lambda: scripted_worker(None), timeout=0.05)
        service = BaziService(memory_cache, dispatcher, default_mode="manual")

        record = await service.get_standard_record("k", sample_birth)

        assert record["bazi"]["text"] == "辛未 壬辰 庚午 壬午"
        assert dispatcher.pending_task_ids() == []
        assert memory_cache.get("k") is not None

    async def test_worker_error_recovers(self, memory_cache, sample_birth, scripted_worker):
        def crash(message):
            return {"type": message["type"], "taskId": message["taskId"], "payload": None,
                    "error": "boom", "errorType": "RuntimeError"}

        service = BaziService(memory_cache, BaziComputeDispatcher(lambda: scripted_worker(crash)),
                              default_mode="manual")
        record = await service.get_standard_record(None, sample_birth)
        assert record["dayMaster"]["gan"] == "庚"

    async def test_input_error_propagates(self, memory_cache, sample_birth, scripted_worker):
        def reject(message):
            return {"type": message["type"], "taskId": message["taskId"], "payload": None,
                    "error": "出生时间格式错误", "errorType": "invalid_date_format"}

        service = BaziService(memory_cache, BaziComputeDispatcher(lambda: scripted_worker(reject)))
        with pytest.raises(InvalidDateFormatError):
            await service.get_standard_record(None, sample_birth)
        assert memory_cache.get("小明") is None

    async def test_cache_hit_skips_worker(self, memory_cache, sample_birth, scripted_worker):
        worker = scripted_worker(None)
        service = BaziService(memory_cache, BaziComputeDispatcher(lambda: worker), default_mode="manual")
        service.get_standard_record_sync(None, sample_birth)

        record = await service.get_standard_record(None, sample_birth)

        assert record["meta"]["dataSource"] == "cache"
        assert worker.messages == []

    async def test_liunian(self, sync_service, sample_birth):
        record = sync_service.get_standard_record_sync(None, sample_birth)
        result = await sync_service.get_liunian(record, 2025)
        assert result["liuNianGanZhi"] == "乙巳"
        assert result["dayMaster"] == "庚"
