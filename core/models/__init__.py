# -*- coding: utf-8 -*-
"""
八字引擎数据模型
"""

from .birth import BirthInput, DEFAULT_BIRTH_TIME, DEFAULT_LATITUDE, DEFAULT_LONGITUDE
from .pillars import DayMaster, FourPillars, Pillar, PILLAR_NAMES, WuXingStats
from .record import (
    BAZI_DATA_VERSION,
    DATA_SOURCE_CACHE,
    DATA_SOURCE_CALCULATE,
    DATA_SOURCE_CONVERTED,
    DATA_SOURCE_FALLBACK,
    RecordMeta,
    StandardBaziRecord,
)

__all__ = [
    'BirthInput', 'DEFAULT_BIRTH_TIME', 'DEFAULT_LATITUDE', 'DEFAULT_LONGITUDE',
    'DayMaster', 'FourPillars', 'Pillar', 'PILLAR_NAMES', 'WuXingStats',
    'BAZI_DATA_VERSION', 'DATA_SOURCE_CACHE', 'DATA_SOURCE_CALCULATE',
    'DATA_SOURCE_CONVERTED', 'DATA_SOURCE_FALLBACK', 'RecordMeta', 'StandardBaziRecord',
]
