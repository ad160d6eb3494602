#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
标准八字记录（StandardBaziRecord）

字段为 camelCase 的 dict/JSON 结构，meta 不可变；重新计算总是生成新记录。
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

BAZI_DATA_VERSION = '1.0.0'

# 数据来源
DATA_SOURCE_CALCULATE = 'calculate'
DATA_SOURCE_CACHE = 'cache'
DATA_SOURCE_CONVERTED = 'converted'
DATA_SOURCE_FALLBACK = 'fallback'

RECORD_SECTIONS = ('birth', 'bazi', 'wuXing', 'naYin', 'dayMaster', 'analysis')


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass(frozen=True)
class RecordMeta:
    """记录元数据（calculatedAt / calculatedForDate 一经生成不再改变）"""
    version: str = BAZI_DATA_VERSION
    calculated_at: str = field(default_factory=utc_now_iso)
    calculated_for_date: Optional[str] = None
    data_source: str = DATA_SOURCE_CALCULATE
    identity_key: Optional[str] = None
    nickname: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'calculatedAt': self.calculated_at,
            'calculatedForDate': self.calculated_for_date,
            'dataSource': self.data_source,
            'identityKey': self.identity_key,
            'nickname': self.nickname,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'RecordMeta':
        data = data or {}
        return cls(
            version=data.get('version') or BAZI_DATA_VERSION,
            calculated_at=data.get('calculatedAt') or utc_now_iso(),
            calculated_for_date=data.get('calculatedForDate'),
            data_source=data.get('dataSource') or DATA_SOURCE_CALCULATE,
            identity_key=data.get('identityKey'),
            nickname=data.get('nickname'),
        )


@dataclass(frozen=True)
class StandardBaziRecord:
    """标准八字记录"""
    meta: RecordMeta
    birth: Dict[str, Any]
    bazi: Dict[str, Any]
    wu_xing: Dict[str, Any]
    na_yin: Dict[str, Any]
    day_master: Dict[str, Any]
    analysis: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """导出为 JSON 结构（深拷贝，调用方修改不影响记录本身）"""
        return {
            'meta': self.meta.to_dict(),
            'birth': copy.deepcopy(self.birth),
            'bazi': copy.deepcopy(self.bazi),
            'wuXing': copy.deepcopy(self.wu_xing),
            'naYin': copy.deepcopy(self.na_yin),
            'dayMaster': copy.deepcopy(self.day_master),
            'analysis': copy.deepcopy(self.analysis),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StandardBaziRecord':
        return cls(
            meta=RecordMeta.from_dict(data.get('meta')),
            birth=copy.deepcopy(data.get('birth') or {}),
            bazi=copy.deepcopy(data.get('bazi') or {}),
            wu_xing=copy.deepcopy(data.get('wuXing') or {}),
            na_yin=copy.deepcopy(data.get('naYin') or {}),
            day_master=copy.deepcopy(data.get('dayMaster') or {}),
            analysis=copy.deepcopy(data.get('analysis') or {}),
        )

    def with_data_source(self, data_source: str) -> 'StandardBaziRecord':
        """返回 dataSource 不同的副本，其他 meta 字段保持不变"""
        return replace(self, meta=replace(self.meta, data_source=data_source))

    def with_identity(self, identity_key: Optional[str]) -> 'StandardBaziRecord':
        return replace(self, meta=replace(self.meta, identity_key=identity_key))

    @property
    def text(self) -> str:
        return self.bazi.get('text', '')
