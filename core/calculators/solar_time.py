#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
真太阳时校正

以东八区标准经线 120°E 为基准，经度每差 1 度时间差 4 分钟。
只调整时分，不改变日期；跨越零点时通过 day_offset 告知调用方。
"""

import math
from dataclasses import dataclass
from datetime import time
from typing import Optional, Union

from core.calculators.bazi_logging import safe_log

STANDARD_MERIDIAN = 120.0
MINUTES_PER_DEGREE = 4.0
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class CorrectedTime:
    """校正后的时间"""
    hour: int
    minute: int
    offset_minutes: float = 0.0
    day_offset: int = 0

    def to_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class SolarTimeCorrector:
    """真太阳时校正器"""

    @staticmethod
    def offset_minutes(longitude: Optional[float]) -> float:
        if longitude is None:
            return 0.0
        return (longitude - STANDARD_MERIDIAN) * MINUTES_PER_DEGREE

    @staticmethod
    def correct(clock_time: Union[time, str], longitude: Optional[float]) -> CorrectedTime:
        """
        按经度校正时间

        Args:
            clock_time: 钟表时间（time 或 'HH:MM'）
            longitude: 经度，None 时不校正

        Returns:
            CorrectedTime: 校正后的时分（按 24 小时回绕，秒数舍去）
        """
        if isinstance(clock_time, str):
            hour, minute = map(int, clock_time.split(':')[:2])
        else:
            hour, minute = clock_time.hour, clock_time.minute

        offset = SolarTimeCorrector.offset_minutes(longitude)
        if offset == 0:
            return CorrectedTime(hour, minute, 0.0, 0)

        total = math.floor(hour * 60 + minute + offset)
        day_offset = max(-1, min(1, total // MINUTES_PER_DAY))
        wrapped = total % MINUTES_PER_DAY
        if day_offset:
            safe_log('debug', f"真太阳时跨日: {hour:02d}:{minute:02d} 经度{longitude} -> 偏移{offset:.1f}分钟")
        return CorrectedTime(wrapped // 60, wrapped % 60, offset, day_offset)

    @staticmethod
    def correct_hhmm(clock_time: str, longitude: Optional[float]) -> str:
        """'HH:MM' -> 校正后的 'HH:MM'"""
        return str(SolarTimeCorrector.correct(clock_time, longitude))
