#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
历法转换（lunar_python 封装）

lunar_python 作为黑盒使用：给定公历年月日时分，返回农历日期、四柱、五行与纳音。
"""

from dataclasses import dataclass, field
from typing import Dict

from lunar_python import Solar

from core.data.constants import Branch, Stem, nayin_of, cycle_index

PILLAR_KEYS = ('year', 'month', 'day', 'hour')


@dataclass(frozen=True)
class OracleResult:
    """历法转换结果"""
    lunar_year: int
    lunar_month: int
    lunar_day: int
    is_leap_month: bool
    year_in_chinese: str
    month_in_chinese: str
    day_in_chinese: str
    year_gan_zhi: str
    zodiac: str
    pillars: Dict[str, str] = field(default_factory=dict)
    wu_xing: Dict[str, str] = field(default_factory=dict)
    na_yin: Dict[str, str] = field(default_factory=dict)
    is_zi_shi_adjusted: bool = False

    @property
    def lunar_text(self) -> str:
        """如：辛未年 三月十六"""
        return f"{self.year_gan_zhi}年 {self.month_in_chinese}月{self.day_in_chinese}"

    @property
    def short_text(self) -> str:
        return f"{self.month_in_chinese}月{self.day_in_chinese}"


class LunarConverter:
    """农历转换工具类 - 提供统一的公历转农历方法"""

    @staticmethod
    def _wu_shu_dun(day_stem: str) -> str:
        """五鼠遁日起时法：根据日干推算子时天干"""
        mapping = {
            '甲': '甲', '己': '甲',  # 甲己还加甲
            '乙': '丙', '庚': '丙',  # 乙庚丙作初
            '丙': '戊', '辛': '戊',  # 丙辛从戊起
            '丁': '庚', '壬': '庚',  # 丁壬庚子居
            '戊': '壬', '癸': '壬',  # 戊癸壬子途
        }
        return mapping[day_stem]

    @staticmethod
    def solar_to_lunar(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> OracleResult:
        """
        将公历日期时间转换为农历信息
        23:00-23:59 不换日柱，四柱全部基于当天；时柱天干按当天日干五鼠遁推算。

        Args:
            year/month/day: 公历日期
            hour/minute: 时间（已经过真太阳时校正）
        Returns:
            OracleResult
        """
        solar = Solar.fromYmdHms(year, month, day, hour, minute, 0)
        lunar = solar.getLunar()
        eight_char = lunar.getEightChar()

        pillars = {
            'year': eight_char.getYear(),
            'month': eight_char.getMonth(),
            'day': eight_char.getDay(),
            'hour': eight_char.getTime(),
        }
        wu_xing = {
            'year': eight_char.getYearWuXing(),
            'month': eight_char.getMonthWuXing(),
            'day': eight_char.getDayWuXing(),
            'hour': eight_char.getTimeWuXing(),
        }
        na_yin = {
            'year': eight_char.getYearNaYin(),
            'month': eight_char.getMonthNaYin(),
            'day': eight_char.getDayNaYin(),
            'hour': eight_char.getTimeNaYin(),
        }

        # 23点不换日：时柱按当天日干五鼠遁重新推算
        is_zi_shi_adjusted = hour >= 23
        if is_zi_shi_adjusted:
            hour_stem = Stem.from_char(LunarConverter._wu_shu_dun(pillars['day'][0]))
            pillars['hour'] = hour_stem.char + Branch.ZI.char
            wu_xing['hour'] = hour_stem.element.value + Branch.ZI.element.value
            na_yin['hour'] = nayin_of(cycle_index(hour_stem, Branch.ZI))

        lunar_month = lunar.getMonth()
        return OracleResult(
            lunar_year=lunar.getYear(),
            lunar_month=abs(lunar_month),
            lunar_day=lunar.getDay(),
            is_leap_month=LunarConverter._get_leap_month_status(lunar),
            year_in_chinese=lunar.getYearInChinese(),
            month_in_chinese=lunar.getMonthInChinese(),
            day_in_chinese=lunar.getDayInChinese(),
            year_gan_zhi=lunar.getYearInGanZhi(),
            zodiac=lunar.getYearShengXiao(),
            pillars=pillars,
            wu_xing=wu_xing,
            na_yin=na_yin,
            is_zi_shi_adjusted=is_zi_shi_adjusted,
        )

    @staticmethod
    def _get_leap_month_status(lunar) -> bool:
        """闰月在 lunar_python 中以负数月份表示"""
        return lunar.getMonth() < 0
