#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
标准八字记录验证器 - 验证记录的完整性

四柱缺失或干支非法为错误；元数据、五行计数、日主缺失为警告。
"""

import logging
from typing import Any, Dict, List

from core.data.constants import is_valid_ganzhi
from core.errors import SchemaValidationWarning
from core.models.pillars import PILLAR_NAMES

logger = logging.getLogger(__name__)

EXPECTED_CHARACTER_COUNT = 8


class BaziDataValidator:
    """标准八字记录验证器"""

    @staticmethod
    def validate_record(record: Any) -> Dict[str, Any]:
        """
        验证标准八字记录

        Args:
            record: 标准结构的记录 dict

        Returns:
            {"valid": bool, "errors": [...], "warnings": [...]}
        """
        errors: List[str] = []
        warnings: List[str] = []

        if not isinstance(record, dict) or not record:
            errors.append('八字数据为空')
            return {'valid': False, 'errors': errors, 'warnings': warnings}

        # 1. 四柱
        bazi = record.get('bazi')
        if not isinstance(bazi, dict):
            errors.append('八字四柱信息不完整')
        else:
            for name in PILLAR_NAMES:
                pillar = bazi.get(name)
                ganzhi = pillar.get('ganZhi') if isinstance(pillar, dict) else None
                if not ganzhi:
                    errors.append(f"bazi.{name}.ganZhi 字段缺失")
                elif not is_valid_ganzhi(ganzhi):
                    errors.append(f"bazi.{name}.ganZhi 干支非法: {ganzhi}")

        # 2. 元数据
        if not isinstance(record.get('meta'), dict):
            warnings.append('缺少元数据（meta）')

        # 3. 五行计数
        wu_xing = record.get('wuXing')
        counts = wu_xing.get('counts') if isinstance(wu_xing, dict) else None
        if not isinstance(counts, dict) or not counts:
            warnings.append('五行信息可能不完整（wuXing.counts 缺失）')
        else:
            total = sum(v for v in counts.values() if isinstance(v, (int, float)))
            if total != EXPECTED_CHARACTER_COUNT:
                warnings.append(f"五行计数合计为 {total}，应为 {EXPECTED_CHARACTER_COUNT}")

        # 4. 日主
        if not isinstance(record.get('dayMaster'), dict) or not record['dayMaster'].get('gan'):
            warnings.append('缺少日主信息（dayMaster）')

        for message in warnings:
            logger.warning(f"{SchemaValidationWarning.__name__}: {message}")
        if errors:
            logger.warning(f"八字记录验证失败: {errors}")

        return {
            'valid': not errors,
            'errors': errors,
            'warnings': warnings,
        }
