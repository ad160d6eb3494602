#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
标准八字记录组装

出生参数 -> 真太阳时 -> 四柱 -> 五行分析 -> StandardBaziRecord
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from core.analyzers.wuxing_balance_analyzer import WuxingBalanceAnalyzer
from core.calculators.bazi_core_calculator import BaziCoreCalculator, MODE_ORACLE
from core.calculators.LunarConverter import OracleResult
from core.calculators.solar_time import CorrectedTime, SolarTimeCorrector
from core.data.constants import SHICHEN_NAMES, western_zodiac
from core.models.birth import BirthInput
from core.models.pillars import FourPillars
from core.models.record import DATA_SOURCE_CALCULATE, RecordMeta, StandardBaziRecord

logger = logging.getLogger(__name__)


class StandardRecordBuilder:
    """标准八字记录构建器"""

    @staticmethod
    def build(birth: BirthInput, mode: str = MODE_ORACLE, identity_key: Optional[str] = None,
              calculated_for_date: Optional[str] = None) -> StandardBaziRecord:
        """
        计算并组装完整记录

        Args:
            birth: 出生参数
            mode: 'oracle' 或 'manual'
            identity_key: 身份键，缺省为 birth.identity_key()
            calculated_for_date: 计算所属日期，缺省为当天

        Returns:
            StandardBaziRecord（dataSource='calculate'）
        """
        oracle: Optional[OracleResult] = None
        if mode == MODE_ORACLE:
            corrected, oracle = BaziCoreCalculator.lookup_oracle(birth)
            four_pillars = BaziCoreCalculator.pillars_from_oracle(oracle, birth.pillars_approximate)
        else:
            corrected = SolarTimeCorrector.correct(birth.birth_time, birth.longitude)
            four_pillars = BaziCoreCalculator.compute(birth, mode)

        stats, day_master, analysis = WuxingBalanceAnalyzer.analyze(four_pillars)

        meta = RecordMeta(
            calculated_for_date=calculated_for_date or date.today().isoformat(),
            data_source=DATA_SOURCE_CALCULATE,
            identity_key=identity_key or birth.identity_key(),
            nickname=birth.nickname,
        )
        na_yin = {name: pillar.na_yin for name, pillar in four_pillars.items()}
        na_yin['text'] = ' '.join(pillar.na_yin for pillar in four_pillars)

        record = StandardBaziRecord(
            meta=meta,
            birth={
                'solar': StandardRecordBuilder._solar_block(birth),
                'lunar': StandardRecordBuilder._lunar_block(four_pillars, oracle),
                'location': StandardRecordBuilder._location_block(birth),
                'time': StandardRecordBuilder._time_block(birth, corrected, four_pillars),
            },
            bazi=four_pillars.to_dict(),
            wu_xing=stats.to_dict(),
            na_yin=na_yin,
            day_master=day_master.to_dict(),
            analysis=analysis,
        )
        logger.info(f"八字计算完成: {meta.identity_key} {birth.fingerprint()} -> {four_pillars.text} ({mode})")
        return record

    # === 记录分块 ==================================================================================

    @staticmethod
    def _solar_block(birth: BirthInput) -> Dict[str, Any]:
        d, t = birth.birth_date, birth.birth_time
        return {
            'year': d.year,
            'month': d.month,
            'day': d.day,
            'hour': t.hour,
            'minute': t.minute,
            'weekday': (d.weekday() + 1) % 7,  # 0=周日
            'zodiac': western_zodiac(d.month, d.day),
            'text': f"{d.year}年{d.month}月{d.day}日",
            'fullDate': birth.date_str,
            'fullTime': f"{birth.time_str}:00",
            'fullDateTime': f"{birth.date_str} {birth.time_str}:00",
        }

    @staticmethod
    def _lunar_block(four_pillars: FourPillars, oracle: Optional[OracleResult]) -> Dict[str, Any]:
        year_gz = four_pillars.year.gan_zhi
        block: Dict[str, Any] = {
            'yearGanZhi': year_gz,
            'monthGanZhi': four_pillars.month.gan_zhi,
            'dayGanZhi': four_pillars.day.gan_zhi,
            'zodiacAnimal': four_pillars.year.branch.animal,
        }
        if oracle is None:
            # manual 模式不查询农历日期
            block.update({
                'year': None, 'yearInChinese': None, 'month': None, 'monthInChinese': None,
                'isLeapMonth': False, 'day': None, 'dayInChinese': None,
                'text': f"{year_gz}年",
                'fullText': f"{year_gz}年 {block['zodiacAnimal']}",
                'shortText': '',
            })
            return block

        block.update({
            'year': oracle.lunar_year,
            'yearInChinese': oracle.year_in_chinese,
            'yearGanZhi': oracle.year_gan_zhi,
            'month': oracle.lunar_month,
            'monthInChinese': oracle.month_in_chinese,
            'isLeapMonth': oracle.is_leap_month,
            'day': oracle.lunar_day,
            'dayInChinese': oracle.day_in_chinese,
            'zodiacAnimal': oracle.zodiac,
            'text': oracle.lunar_text,
            'fullText': f"{oracle.lunar_text} {oracle.zodiac}",
            'shortText': oracle.short_text,
        })
        return block

    @staticmethod
    def _location_block(birth: BirthInput) -> Dict[str, Any]:
        text = birth.location_text() or f"经度: {birth.longitude}°, 纬度: {birth.latitude}°"
        return {
            'longitude': birth.longitude,
            'latitude': birth.latitude,
            'province': birth.province or '',
            'city': birth.city or '',
            'district': birth.district or '',
            'text': text,
        }

    @staticmethod
    def _time_block(birth: BirthInput, corrected: CorrectedTime, four_pillars: FourPillars) -> Dict[str, Any]:
        hour = four_pillars.hour
        shichen = SHICHEN_NAMES[hour.branch.value]
        return {
            'original': birth.time_str,
            'solarTime': str(corrected),
            'offsetMinutes': round(corrected.offset_minutes, 2),
            'dayOffset': corrected.day_offset,
            'shichen': shichen,
            'shichenGanZhi': hour.gan_zhi,
            'shichenIndex': hour.branch.value,
            'isApproximate': four_pillars.is_approximate,
            'approximateFields': list(birth.approximate_fields),
            'text': f"{corrected} {shichen}",
        }
