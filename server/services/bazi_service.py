#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字计算服务层

缓存 -> 后台 Worker 计算 -> 归一化 -> 写缓存。
Worker 超时或出错时改走同步计算；出生参数错误直接抛给调用方。
"""

import logging
from typing import Any, Dict, Optional, Union

from core.calculators.bazi_core_calculator import MODE_ORACLE
from core.errors import ComputeError
from core.models.birth import BirthInput
from core.models.record import DATA_SOURCE_CACHE, StandardBaziRecord
from server.services.bazi_compute_dispatcher import BaziComputeDispatcher
from server.services.bazi_data_cache import BaziDataCache
from server.services.bazi_schema_normalizer import BaziSchemaNormalizer
from server.utils.async_executor import run_in_executor

logger = logging.getLogger(__name__)


class BaziService:
    """八字计算服务类"""

    def __init__(self, cache: BaziDataCache, dispatcher: BaziComputeDispatcher,
                 normalizer=BaziSchemaNormalizer, default_mode: str = MODE_ORACLE):
        self.cache = cache
        self.dispatcher = dispatcher
        self.normalizer = normalizer
        self.default_mode = default_mode

    # === 标准记录 ==================================================================================

    async def get_standard_record(self, identity_key: Optional[str], birth_input: BirthInput,
                                  mode: Optional[str] = None) -> Dict[str, Any]:
        """
        获取标准八字记录（异步，计算在后台 Worker 中进行）

        Args:
            identity_key: 身份键，None 时使用 birth_input.identity_key()
            birth_input: 出生参数
            mode: 'oracle' / 'manual'，默认使用服务配置

        Returns:
            标准记录 dict（缓存命中时 meta.dataSource='cache'）

        Raises:
            MissingBirthDateError / InvalidDateFormatError: 出生参数错误
        """
        identity_key = identity_key or birth_input.identity_key()
        cached = self._cached_record(identity_key, birth_input)
        if cached is not None:
            return cached

        payload = self._birth_payload(identity_key, birth_input, mode)
        try:
            record = await self.dispatcher.calculate_bazi(payload)
        except ComputeError as e:
            logger.warning(f"后台计算失败，改用同步计算: {identity_key} {e.error_type} {e.message}")
            record = await run_in_executor(self.dispatcher.calculate_bazi_sync, payload)
        return self._store(identity_key, birth_input, record)

    def get_standard_record_sync(self, identity_key: Optional[str], birth_input: BirthInput,
                                 mode: Optional[str] = None) -> Dict[str, Any]:
        """同步获取标准八字记录（不经过 Worker）"""
        identity_key = identity_key or birth_input.identity_key()
        cached = self._cached_record(identity_key, birth_input)
        if cached is not None:
            return cached
        record = self.dispatcher.calculate_bazi_sync(self._birth_payload(identity_key, birth_input, mode))
        return self._store(identity_key, birth_input, record)

    def fallback_record(self) -> Dict[str, Any]:
        """兜底记录（出生参数错误后仍需渲染时使用）"""
        return self.normalizer.normalize({})

    # === 流年 ======================================================================================

    async def get_liunian(self, record: Union[StandardBaziRecord, Dict[str, Any]], target_year: int) -> Dict[str, Any]:
        """
        流年运势分析

        Raises:
            ValueError: 记录中取不到合法日干
        """
        try:
            return await self.dispatcher.calculate_liunian(record, target_year)
        except ComputeError as e:
            logger.warning(f"后台流年分析失败，改用同步计算: {target_year} {e.error_type} {e.message}")
            return await run_in_executor(self.dispatcher.calculate_liunian_sync, record, target_year)

    # === 内部步骤 ==================================================================================

    def _birth_payload(self, identity_key: str, birth_input: BirthInput, mode: Optional[str]) -> Dict[str, Any]:
        return {
            'contract': birth_input.to_contract(),
            'mode': mode or self.default_mode,
            'identityKey': identity_key,
        }

    def _cached_record(self, identity_key: str, birth_input: BirthInput) -> Optional[Dict[str, Any]]:
        entry = self.cache.get_consistent(identity_key, birth_input)
        if entry is None:
            return None
        record = self.normalizer.normalize(entry.record)
        record['meta']['dataSource'] = DATA_SOURCE_CACHE
        logger.debug(f"缓存命中: {identity_key}")
        return record

    def _store(self, identity_key: str, birth_input: BirthInput, record: Dict[str, Any]) -> Dict[str, Any]:
        standard = self.normalizer.normalize(record)
        self.normalizer.validate(standard)
        self.cache.set(identity_key, birth_input.fingerprint(), standard)
        return standard
