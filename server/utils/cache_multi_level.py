#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
多级缓存系统
架构：L1(内存) -> L2(Redis)

每一层都提供 get / set / keys / delete，值必须可 JSON 序列化。
"""

import fnmatch
import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import redis

logger = logging.getLogger(__name__)


# L1: 本地内存缓存（热点数据）
class L1MemoryCache:
    """L1缓存：本地内存，线程安全"""

    def __init__(self, max_size: int = 50000, ttl: int = 300):
        """
        初始化 L1 缓存

        Args:
            max_size: 最大缓存条目数（默认5万）
            ttl: 缓存过期时间（秒）
        """
        self._cache: Dict[str, Any] = {}
        self._cache_times: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.max_size = max_size
        self.ttl = ttl

    def _expired(self, key: str, now: float) -> bool:
        return now - self._cache_times[key] > self.ttl

    def get(self, key: str) -> Optional[Any]:
        """从缓存获取结果"""
        with self._lock:
            if key not in self._cache:
                return None
            if self._expired(key, time.time()):
                del self._cache[key]
                del self._cache_times[key]
                return None
            return self._cache[key]

    def set(self, key: str, value: Any):
        """设置缓存，满了淘汰最早写入的条目"""
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                oldest = min(self._cache_times, key=self._cache_times.get)
                del self._cache[oldest]
                del self._cache_times[oldest]
            self._cache[key] = value
            self._cache_times[key] = time.time()

    def delete(self, key: str):
        with self._lock:
            self._cache.pop(key, None)
            self._cache_times.pop(key, None)

    def keys(self, pattern: str = '*') -> List[str]:
        now = time.time()
        with self._lock:
            return [k for k in self._cache if not self._expired(k, now) and fnmatch.fnmatchcase(k, pattern)]

    def clear(self):
        with self._lock:
            self._cache.clear()
            self._cache_times.clear()

    def stats(self) -> dict:
        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "ttl": self.ttl
        }


# L2: Redis分布式缓存
class L2RedisCache:
    """L2缓存：Redis 中的 JSON 值，支持多实例共享"""

    def __init__(self, redis_client=None, ttl: int = 3600):
        """
        初始化 L2 缓存

        Args:
            redis_client: Redis 客户端对象，None 表示不可用
            ttl: 缓存过期时间（秒）
        """
        self.redis = redis_client
        self.ttl = ttl

    @property
    def available(self) -> bool:
        return self.redis is not None

    def get(self, key: str) -> Optional[Any]:
        if not self.available:
            return None
        try:
            data = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning(f"L2 读取失败（按未命中处理）: {key} {e}")
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"L2 数据无法解析（按未命中处理）: {key} {e}")
            return None

    def set(self, key: str, value: Any):
        if not self.available:
            return
        try:
            self.redis.setex(key, self.ttl, json.dumps(value, ensure_ascii=False))
        except redis.RedisError as e:
            logger.warning(f"L2 写入失败: {key} {e}")

    def delete(self, key: str):
        if not self.available:
            return
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning(f"L2 删除失败: {key} {e}")

    def keys(self, pattern: str = '*') -> List[str]:
        if not self.available:
            return []
        try:
            return [k.decode('utf-8') if isinstance(k, bytes) else k
                    for k in self.redis.scan_iter(match=pattern)]
        except redis.RedisError as e:
            logger.warning(f"L2 扫描失败: {pattern} {e}")
            return []

    def stats(self) -> dict:
        if not self.available:
            return {"status": "unavailable"}
        try:
            info = self.redis.info()
        except redis.RedisError:
            return {"status": "error"}
        return {
            "status": "available",
            "used_memory": info.get('used_memory_human', 'N/A'),
            "connected_clients": info.get('connected_clients', 0),
        }


# 多级缓存管理器
class MultiLevelCache:
    """多级缓存管理器"""

    def __init__(self,
                 l1_max_size: int = 50000,
                 l1_ttl: int = 300,
                 redis_client=None,
                 redis_ttl: int = 3600):
        self.l1 = L1MemoryCache(max_size=l1_max_size, ttl=l1_ttl)
        self.l2 = L2RedisCache(redis_client=redis_client, ttl=redis_ttl)

    def get(self, key: str) -> Optional[Any]:
        """
        多级缓存读取：L1 -> L2，L2 命中时回填 L1
        """
        value = self.l1.get(key)
        if value is not None:
            return value

        value = self.l2.get(key)
        if value is not None:
            self.l1.set(key, value)
            return value
        return None

    def set(self, key: str, value: Any):
        """同时写入 L1 和 L2"""
        self.l1.set(key, value)
        self.l2.set(key, value)

    def delete(self, key: str):
        self.l1.delete(key)
        self.l2.delete(key)

    def keys(self, pattern: str = '*') -> List[str]:
        return sorted(set(self.l1.keys(pattern)) | set(self.l2.keys(pattern)))

    def clear(self):
        """清空 L1（L2 按 TTL 过期）"""
        self.l1.clear()

    def stats(self) -> dict:
        return {
            "l1": self.l1.stats(),
            "l2": self.l2.stats()
        }
