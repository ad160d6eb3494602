#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
核心四柱计算逻辑，供 Worker 与同步路径共享使用。

两种模式：
- oracle：真太阳时校正后交给 lunar_python 排盘（默认）
- manual：纯干支循环算术，换月日使用固定的近似节气日

注意：manual 模式的换月日与历史实现保持一致，严禁在此模块内改为真实节气。
"""

from __future__ import annotations

import logging
import math
from datetime import date, time
from typing import Any, Optional, Tuple

from core.calculators.LunarConverter import LunarConverter, OracleResult, PILLAR_KEYS
from core.calculators.solar_time import CorrectedTime, SolarTimeCorrector
from core.data.constants import Branch, Stem
from core.models.birth import BirthInput
from core.models.pillars import FourPillars, Pillar

logger = logging.getLogger(__name__)

MODE_ORACLE = 'oracle'
MODE_MANUAL = 'manual'
COMPUTE_MODES = (MODE_ORACLE, MODE_MANUAL)

# 公历月 -> (换月日, 月序)，月序 0 为寅月
MONTH_BOUNDARIES = {
    2: (4, 0), 3: (6, 1), 4: (5, 2), 5: (6, 3), 6: (6, 4), 7: (7, 5),
    8: (8, 6), 9: (8, 7), 10: (8, 8), 11: (7, 9), 12: (7, 10), 1: (6, 11),
}

# 立春近似日
SPRING_START_MONTH = 2
SPRING_START_DAY = 4

# 2000-01-01 为戊午日（序号 54），由 JD 推日柱时的偏移量
DAY_CYCLE_OFFSET = 49


class BaziCoreCalculator:
    """核心八字排盘计算器 - 仅包含纯计算逻辑"""

    # === 公开方法 ==================================================================================

    @staticmethod
    def compute_pillars(birth_date: Any, birth_time: Any = None, longitude: Optional[float] = None,
                        mode: str = MODE_ORACLE) -> FourPillars:
        """
        计算四柱

        Args:
            birth_date: 出生日期（'YYYY-MM-DD' 或 date），缺失抛 MissingBirthDateError
            birth_time: 出生时间（'HH:MM' 或 time），缺失时使用默认时间并标记为近似
            longitude: 经度，缺失时使用默认经度并标记为近似
            mode: 'oracle' 或 'manual'

        Returns:
            FourPillars
        """
        birth = BirthInput(birth_date=birth_date, birth_time=birth_time, longitude=longitude)
        return BaziCoreCalculator.compute(birth, mode)

    @staticmethod
    def compute(birth: BirthInput, mode: str = MODE_ORACLE) -> FourPillars:
        if mode == MODE_ORACLE:
            return BaziCoreCalculator.compute_with_oracle(birth)
        if mode == MODE_MANUAL:
            return BaziCoreCalculator.compute_manual(birth)
        raise ValueError(f"未知计算模式: {mode}，可选: {', '.join(COMPUTE_MODES)}")

    @staticmethod
    def lookup_oracle(birth: BirthInput) -> Tuple[CorrectedTime, OracleResult]:
        """真太阳时校正后查询历法（日期不随校正改变）"""
        corrected = SolarTimeCorrector.correct(birth.birth_time, birth.longitude)
        solar_date = birth.birth_date
        result = LunarConverter.solar_to_lunar(
            solar_date.year, solar_date.month, solar_date.day, corrected.hour, corrected.minute
        )
        if result.is_zi_shi_adjusted:
            logger.debug(f"23点以后不换日柱: {birth.date_str} {corrected}，时柱 {result.pillars['hour']}")
        return corrected, result

    @staticmethod
    def compute_with_oracle(birth: BirthInput) -> FourPillars:
        _, result = BaziCoreCalculator.lookup_oracle(birth)
        return BaziCoreCalculator.pillars_from_oracle(result, birth.pillars_approximate)

    @staticmethod
    def pillars_from_oracle(result: OracleResult, is_approximate: bool = False) -> FourPillars:
        year, month, day, hour = (
            Pillar.from_ganzhi(result.pillars[key], result.na_yin.get(key, ''))
            for key in PILLAR_KEYS
        )
        return FourPillars(year, month, day, hour, is_approximate=is_approximate)

    @staticmethod
    def compute_manual(birth: BirthInput) -> FourPillars:
        corrected = SolarTimeCorrector.correct(birth.birth_time, birth.longitude)
        solar_date = birth.birth_date

        year = BaziCoreCalculator.year_pillar(solar_date)
        month = BaziCoreCalculator.month_pillar(solar_date, year.stem)
        day = BaziCoreCalculator.day_pillar(solar_date)
        hour = BaziCoreCalculator.hour_pillar(day.stem, corrected.hour)
        return FourPillars(year, month, day, hour, is_approximate=birth.pillars_approximate)

    # === 单柱计算 ===================================================================================

    @staticmethod
    def year_pillar(solar_date: date) -> Pillar:
        """年柱：立春（近似 2 月 4 日）前算上一年"""
        effective_year = solar_date.year
        if solar_date.month < SPRING_START_MONTH or (
                solar_date.month == SPRING_START_MONTH and solar_date.day < SPRING_START_DAY):
            effective_year -= 1
        return Pillar.from_index((effective_year - 4) % 60)

    @staticmethod
    def month_index(month: int, day: int) -> int:
        """月序（0=寅月 ... 11=丑月），换月日前沿用上一个月的月序"""
        start_day, index = MONTH_BOUNDARIES[month]
        if day >= start_day:
            return index
        return (index - 1) % 12

    @staticmethod
    def month_pillar(solar_date: date, year_stem: Optional[Stem] = None) -> Pillar:
        """月柱：五虎遁，年干决定寅月天干"""
        if year_stem is None:
            year_stem = BaziCoreCalculator.year_pillar(solar_date).stem
        index = BaziCoreCalculator.month_index(solar_date.month, solar_date.day)
        start = (year_stem.value % 5) * 2 + 2
        return Pillar(Stem((start + index) % 10), Branch((index + 2) % 12))

    @staticmethod
    def julian_day(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> float:
        """天文儒略日（午夜为 .5）"""
        if month <= 2:
            year -= 1
            month += 12
        a = year // 100
        b = 2 - a + a // 4
        return (math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1))
                + day + b - 1524.5 + (hour + minute / 60) / 24)

    @staticmethod
    def day_pillar(solar_date: date, clock_time: Optional[time] = None) -> Pillar:
        """日柱：与一天中的时刻无关"""
        hour = clock_time.hour if clock_time else 0
        minute = clock_time.minute if clock_time else 0
        jd = BaziCoreCalculator.julian_day(solar_date.year, solar_date.month, solar_date.day, hour, minute)
        return Pillar.from_index(math.floor(jd + 0.5 + DAY_CYCLE_OFFSET) % 60)

    @staticmethod
    def hour_pillar(day_stem: Stem, hour: int) -> Pillar:
        """时柱：五鼠遁，23 点按子时且沿用当天日干"""
        branch = ((hour + 1) // 2) % 12
        start = (day_stem.value % 5) * 2
        return Pillar(Stem((start + branch) % 10), Branch(branch))
