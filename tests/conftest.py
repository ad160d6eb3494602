#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pytest 全局配置

提供：
- 共享 fixtures（出生参数、缓存、Worker 替身）
- 测试标记
"""

import asyncio
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest

# 添加项目根目录到路径
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)


# ==================== Worker 替身 ====================

class ScriptedWorker:
    """
    Worker 通道替身

    responder 返回 dict 时在下一轮事件循环中回调 on_message；返回 None 时不响应（用于超时测试）。
    """

    def __init__(self, responder: Optional[Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = None):
        self.responder = responder
        self.messages: List[Dict[str, Any]] = []
        self.on_message = None
        self.terminated = False

    def post_message(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)
        if self.responder is None:
            return
        response = self.responder(message)
        if response is not None:
            asyncio.get_running_loop().call_soon(self.on_message, response)

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture
def scripted_worker():
    """返回 ScriptedWorker 类本身，测试中按需构造"""
    return ScriptedWorker


# ==================== 数据 Fixtures ====================

@pytest.fixture
def sample_contract() -> Dict[str, Any]:
    """
    示例出生信息（北京，1991-04-30 12:30）

    真太阳时 12:15，四柱 辛未 壬辰 庚午 壬午
    """
    return {
        "birthDate": "1991-04-30",
        "birthTime": "12:30",
        "birthLocation": {"lng": 116.40, "lat": 39.90, "province": "北京市", "city": "北京市"},
        "nickname": "小明",
    }


@pytest.fixture
def sample_birth(sample_contract):
    from core.models.birth import BirthInput
    return BirthInput.from_contract(sample_contract)


@pytest.fixture
def legacy_record() -> Dict[str, Any]:
    """旧版扁平结构记录"""
    return {
        "year": "辛未",
        "month": "壬辰",
        "day": "庚午",
        "hour": "壬午",
        "birthDate": "1991-04-30",
        "birthTime": "12:30",
        "trueSolarTime": "12:15",
        "lunarBirthDate": "辛未年 三月十六",
        "nickname": "小明",
    }


@pytest.fixture
def memory_cache():
    """只有 L1 的八字记录缓存"""
    from server.services.bazi_data_cache import BaziDataCache
    from server.utils.cache_multi_level import MultiLevelCache
    return BaziDataCache(MultiLevelCache(l1_max_size=100, l1_ttl=300))


@pytest.fixture
def mock_redis_client():
    """
    Mock Redis 客户端

    Yields:
        MagicMock Redis 客户端对象
    """
    from unittest.mock import MagicMock
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    mock_redis.setex.return_value = True
    mock_redis.scan_iter.return_value = iter([])
    yield mock_redis


# ==================== 测试钩子 ====================

def pytest_configure(config):
    """
    Pytest 配置钩子

    注册自定义标记
    """
    config.addinivalue_line("markers", "slow: 标记为慢速测试，可通过 -m 'not slow' 跳过")
    config.addinivalue_line("markers", "unit: 单元测试")
    config.addinivalue_line("markers", "api: API 测试")
