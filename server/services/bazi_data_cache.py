#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字记录缓存 - 按身份键保存最近一次计算结果

- 每个身份键最多一条记录（后写覆盖，同键并发写不加锁）
- 读取时比较出生参数指纹，不一致按未命中处理，旧记录保留不修复
- 存储层异常只记录日志，按未命中处理，不影响计算
"""

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from core.errors import CacheInconsistencyMiss
from core.models.birth import BirthInput
from core.models.record import StandardBaziRecord
from server.utils.cache_multi_level import MultiLevelCache

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = 'bazi_record:'


@dataclass(frozen=True)
class CacheEntry:
    """缓存条目"""
    identity_key: str
    birth_params_fingerprint: str
    record: Dict[str, Any]
    stored_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identityKey': self.identity_key,
            'birthParamsFingerprint': self.birth_params_fingerprint,
            'record': copy.deepcopy(self.record),
            'storedAt': self.stored_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheEntry':
        return cls(
            identity_key=data['identityKey'],
            birth_params_fingerprint=data['birthParamsFingerprint'],
            record=copy.deepcopy(data['record']),
            stored_at=float(data.get('storedAt') or 0.0),
        )


class BaziDataCache:
    """八字记录缓存管理器"""

    def __init__(self, store):
        """
        Args:
            store: 提供 get / set / keys / delete 的键值存储（如 MultiLevelCache）
        """
        self.store = store
        self._counters = {'hits': 0, 'misses': 0, 'inconsistent': 0, 'writes': 0, 'errors': 0}

    @classmethod
    def from_config(cls, engine_config, redis_client=None) -> 'BaziDataCache':
        """按引擎配置创建（未启用 Redis 时只有 L1）"""
        store = MultiLevelCache(
            l1_max_size=engine_config.cache_l1_max_size,
            l1_ttl=engine_config.cache_l1_ttl,
            redis_client=redis_client if engine_config.cache_use_redis else None,
            redis_ttl=engine_config.cache_l2_ttl,
        )
        return cls(store)

    @staticmethod
    def _cache_key(identity_key: str) -> str:
        return f"{CACHE_KEY_PREFIX}{identity_key}"

    def get(self, identity_key: str) -> Optional[CacheEntry]:
        """
        按身份键读取缓存条目（不检查指纹）

        Returns:
            CacheEntry，不存在或读取失败时返回 None
        """
        cache_key = self._cache_key(identity_key)
        try:
            raw = self.store.get(cache_key)
            entry = CacheEntry.from_dict(raw) if raw else None
        except Exception as e:
            self._counters['errors'] += 1
            logger.warning(f"获取缓存失败（不影响业务）: {cache_key} {e}")
            return None

        if entry is None:
            self._counters['misses'] += 1
            logger.debug(f"缓存未命中: {cache_key}")
            return None
        self._counters['hits'] += 1
        return entry

    def set(self, identity_key: str, fingerprint: str,
            record: Union[StandardBaziRecord, Dict[str, Any]]) -> CacheEntry:
        """写入缓存（覆盖该身份键的旧记录）"""
        if isinstance(record, StandardBaziRecord):
            record = record.to_dict()
        # 存储层与调用方互不共享同一份 dict
        entry = CacheEntry(
            identity_key=identity_key,
            birth_params_fingerprint=fingerprint,
            record=copy.deepcopy(record),
            stored_at=time.time(),
        )
        cache_key = self._cache_key(identity_key)
        try:
            self.store.set(cache_key, entry.to_dict())
            self._counters['writes'] += 1
            logger.debug(f"缓存已设置: {cache_key} ({fingerprint})")
        except Exception as e:
            self._counters['errors'] += 1
            logger.warning(f"设置缓存失败（不影响业务）: {cache_key} {e}")
        return entry

    @staticmethod
    def is_consistent(entry: Optional[CacheEntry], birth_input: BirthInput) -> bool:
        """缓存条目的指纹是否与当前出生参数一致"""
        return entry is not None and entry.birth_params_fingerprint == birth_input.fingerprint()

    def get_consistent(self, identity_key: str, birth_input: BirthInput) -> Optional[CacheEntry]:
        """读取并检查指纹，不一致视为未命中"""
        entry = self.get(identity_key)
        if entry is None:
            return None
        if not self.is_consistent(entry, birth_input):
            self._counters['inconsistent'] += 1
            marker = CacheInconsistencyMiss(identity_key, entry.birth_params_fingerprint, birth_input.fingerprint())
            logger.debug(f"缓存指纹不一致，按未命中处理: {marker!r}")
            return None
        return entry

    def invalidate(self, identity_key: str):
        cache_key = self._cache_key(identity_key)
        try:
            self.store.delete(cache_key)
            logger.debug(f"缓存已失效: {cache_key}")
        except Exception as e:
            self._counters['errors'] += 1
            logger.warning(f"清除缓存失败（不影响业务）: {cache_key} {e}")

    def identities(self) -> List[str]:
        """已缓存的身份键"""
        try:
            keys = self.store.keys(f"{CACHE_KEY_PREFIX}*")
        except Exception as e:
            self._counters['errors'] += 1
            logger.warning(f"列出缓存键失败: {e}")
            return []
        return sorted(key[len(CACHE_KEY_PREFIX):] for key in keys)

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self._counters)
        if hasattr(self.store, 'stats'):
            stats['store'] = self.store.stats()
        return stats
