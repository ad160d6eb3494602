#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字记录结构归一化

历史上存在多种记录结构（顶层 year/month/day/hour、bazi.year 为字符串、
wuxing/nayin 小写、顶层 solar/lunar、birthDate/trueSolarTime 等旧字段），
这里统一转换为 StandardBaziRecord 的 dict 结构。

- normalize 幂等：normalize(normalize(r)) == normalize(r)
- 不修改传入的记录
- 取不到合法四柱时使用兜底四柱 甲子/乙丑/丙寅/丁卯，五行与日主按兜底四柱计算
"""

import copy
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from core.analyzers.wuxing_balance_analyzer import WuxingBalanceAnalyzer
from core.data.constants import SHICHEN_NAMES, is_valid_ganzhi, western_zodiac
from core.errors import BaziInputError
from core.models.birth import (
    DEFAULT_BIRTH_TIME,
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    parse_birth_date,
)
from core.models.pillars import FourPillars, PILLAR_NAMES
from core.models.record import (
    DATA_SOURCE_CONVERTED,
    DATA_SOURCE_FALLBACK,
    RecordMeta,
)
from server.services.bazi_data_validator import BaziDataValidator

logger = logging.getLogger(__name__)

FALLBACK_PILLARS = ('甲子', '乙丑', '丙寅', '丁卯')
FALLBACK_LUNAR_TEXT = '请设置出生信息'
DEFAULT_TIME_TEXT = DEFAULT_BIRTH_TIME.strftime('%H:%M')


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _overlay(defaults: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """source 中非 None 的字段覆盖 defaults"""
    merged = dict(defaults)
    merged.update({k: v for k, v in source.items() if v is not None})
    return merged


def _ganzhi_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get('ganZhi')
    return value if isinstance(value, str) and value else None


class BaziSchemaNormalizer:
    """八字记录归一化器"""

    # === 判断与校验 ================================================================================

    @staticmethod
    def is_standard(record: Any) -> bool:
        """标准结构：meta、birth 与 bazi.year.ganZhi 同时存在"""
        if not isinstance(record, dict):
            return False
        bazi = _as_dict(record.get('bazi'))
        year = bazi.get('year')
        return (isinstance(record.get('meta'), dict)
                and isinstance(record.get('birth'), dict)
                and isinstance(year, dict)
                and bool(year.get('ganZhi')))

    @staticmethod
    def validate(record: Any) -> Dict[str, Any]:
        return BaziDataValidator.validate_record(record)

    # === 归一化 ===================================================================================

    @staticmethod
    def normalize(record: Any) -> Dict[str, Any]:
        """
        将任意版本的记录归一化为标准结构

        Args:
            record: 标准 / 旧版 / 空记录

        Returns:
            dict: 字段完整的标准记录（新对象）
        """
        source = copy.deepcopy(record) if isinstance(record, dict) else {}

        ganzhi_list = BaziSchemaNormalizer._extract_pillars(source)
        is_fallback = ganzhi_list is None
        if is_fallback:
            if source:
                logger.warning("记录中没有合法四柱，使用兜底四柱")
            ganzhi_list = list(FALLBACK_PILLARS)

        four_pillars = FourPillars.from_ganzhi(ganzhi_list)
        stats, day_master, analysis = WuxingBalanceAnalyzer.analyze(four_pillars)

        meta = BaziSchemaNormalizer._meta_block(source, is_fallback)
        birth = BaziSchemaNormalizer._birth_block(source, four_pillars, is_fallback)

        na_yin = {name: pillar.na_yin for name, pillar in four_pillars.items()}
        na_yin['text'] = ' '.join(pillar.na_yin for pillar in four_pillars)

        source_analysis = _as_dict(source.get('analysis'))
        merged_analysis = dict(analysis)
        merged_analysis.update({k: v for k, v in source_analysis.items() if k not in analysis})

        return {
            'meta': meta,
            'birth': birth,
            'bazi': four_pillars.to_dict(),
            'wuXing': stats.to_dict(),
            'naYin': na_yin,
            'dayMaster': day_master.to_dict(),
            'analysis': merged_analysis,
        }

    @staticmethod
    def from_legacy(record: Dict[str, Any]) -> Dict[str, Any]:
        """旧版扁平结构 -> 标准结构"""
        return BaziSchemaNormalizer.normalize(record)

    @staticmethod
    def to_legacy(record: Dict[str, Any]) -> Dict[str, Any]:
        """
        标准结构 -> 旧版扁平结构

        {year, month, day, hour, bazi{year..hour, text}, wuxing, nayin, shichen,
         birthDate, birthTime, lunarBirthDate, trueSolarTime, solar, lunar}
        """
        standard = BaziSchemaNormalizer.normalize(record)
        bazi = standard['bazi']
        birth = standard['birth']
        lunar = birth['lunar']
        time_block = birth['time']
        pillars = {name: bazi[name]['ganZhi'] for name in PILLAR_NAMES}
        wuxing = {name: bazi[name]['wuXing'] for name in PILLAR_NAMES}
        wuxing['text'] = standard['wuXing']['text']

        legacy: Dict[str, Any] = dict(pillars)
        legacy.update({
            'bazi': dict(pillars, text=bazi['text']),
            'wuxing': wuxing,
            'nayin': copy.deepcopy(standard['naYin']),
            'shichen': {'time': time_block['original'], 'ganzhi': time_block['shichenGanZhi']},
            'birthDate': birth['solar'].get('fullDate'),
            'birthTime': time_block['original'],
            'lunarBirthDate': lunar.get('text'),
            'trueSolarTime': time_block['solarTime'],
            'longitude': birth['location']['longitude'],
            'latitude': birth['location']['latitude'],
            'solar': {key: birth['solar'].get(key) for key in ('year', 'month', 'day', 'hour', 'minute', 'text')},
            'lunar': {
                'yearStr': f"{lunar.get('yearGanZhi')}年",
                'monthStr': f"{lunar['monthInChinese']}月" if lunar.get('monthInChinese') else '',
                'dayStr': lunar.get('dayInChinese') or '',
                'text': lunar.get('text'),
            },
        })
        if standard['meta'].get('nickname'):
            legacy['nickname'] = standard['meta']['nickname']
        return legacy

    # === 宽松读取（任意结构） =====================================================================

    @staticmethod
    def get_display_pillars(record: Any) -> Dict[str, str]:
        """四柱干支，取不到时返回兜底四柱"""
        ganzhi_list = BaziSchemaNormalizer._extract_pillars(record) if isinstance(record, dict) else None
        if ganzhi_list is None:
            ganzhi_list = list(FALLBACK_PILLARS)
        pillars = dict(zip(PILLAR_NAMES, ganzhi_list))
        pillars['text'] = ' '.join(ganzhi_list)
        return pillars

    @staticmethod
    def get_true_solar_time(record: Any) -> Optional[str]:
        if not isinstance(record, dict):
            return None
        time_block = _as_dict(_as_dict(record.get('birth')).get('time'))
        return time_block.get('solarTime') or record.get('trueSolarTime') or None

    @staticmethod
    def get_lunar_text(record: Any) -> Optional[str]:
        if not isinstance(record, dict):
            return None
        lunar = _as_dict(_as_dict(record.get('birth')).get('lunar'))
        return (lunar.get('text')
                or _as_dict(record.get('lunar')).get('text')
                or record.get('lunarBirthDate')
                or None)

    @staticmethod
    def get_shichen(record: Any) -> Optional[str]:
        if not isinstance(record, dict):
            return None
        time_block = _as_dict(_as_dict(record.get('birth')).get('time'))
        return time_block.get('shichen') or _as_dict(record.get('shichen')).get('ganzhi') or None

    # === 内部步骤 ==================================================================================

    @staticmethod
    def _extract_pillars(record: Dict[str, Any]) -> Optional[List[str]]:
        """按 bazi.<柱>(dict/str) -> 顶层 <柱> 的顺序取四柱，必须四柱全部合法"""
        bazi = _as_dict(record.get('bazi'))
        for container in (bazi, record):
            ganzhi_list = [_ganzhi_of(container.get(name)) for name in PILLAR_NAMES]
            if all(is_valid_ganzhi(gz) for gz in ganzhi_list):
                return ganzhi_list
        return None

    @staticmethod
    def _meta_block(source: Dict[str, Any], is_fallback: bool) -> Dict[str, Any]:
        meta = source.get('meta')
        if isinstance(meta, dict):
            return RecordMeta.from_dict(meta).to_dict()
        return RecordMeta(
            data_source=DATA_SOURCE_FALLBACK if is_fallback else DATA_SOURCE_CONVERTED,
            nickname=source.get('nickname') or None,
        ).to_dict()

    @staticmethod
    def _birth_block(source: Dict[str, Any], four_pillars: FourPillars, is_fallback: bool) -> Dict[str, Any]:
        birth = _as_dict(source.get('birth'))
        src_solar = _as_dict(birth.get('solar')) or _as_dict(source.get('solar'))
        src_lunar = _as_dict(birth.get('lunar'))
        src_location = _as_dict(birth.get('location'))
        src_time = _as_dict(birth.get('time'))

        candidates = (src_time.get('original'), source.get('birthTime'), _as_dict(source.get('shichen')).get('time'))
        original_time = next((value.strip() for value in candidates if isinstance(value, str) and value.strip()),
                             DEFAULT_TIME_TEXT)
        full_date = src_solar.get('fullDate') or source.get('birthDate')

        return {
            'solar': _overlay(BaziSchemaNormalizer._derive_solar(full_date, original_time), src_solar),
            'lunar': _overlay(BaziSchemaNormalizer._derive_lunar(source, four_pillars, is_fallback), src_lunar),
            'location': _overlay(BaziSchemaNormalizer._derive_location(source), src_location),
            'time': _overlay(BaziSchemaNormalizer._derive_time(source, original_time, four_pillars), src_time),
        }

    @staticmethod
    def _derive_solar(full_date: Any, original_time: str) -> Dict[str, Any]:
        solar: Dict[str, Any] = {
            'year': None, 'month': None, 'day': None, 'hour': None, 'minute': None,
            'weekday': None, 'zodiac': None, 'text': None,
            'fullDate': None, 'fullTime': None, 'fullDateTime': None,
        }
        parsed: Optional[date] = None
        if full_date:
            try:
                parsed = parse_birth_date(full_date)
            except BaziInputError as e:
                logger.debug(f"旧记录出生日期无法解析，忽略: {full_date} ({e.message})")
        if parsed is None:
            return solar

        hour_text, _, minute_text = original_time.partition(':')
        hour = int(hour_text) if hour_text.isdigit() else None
        minute = int(minute_text[:2]) if minute_text[:2].isdigit() else None
        date_text = parsed.strftime('%Y-%m-%d')
        solar.update({
            'year': parsed.year,
            'month': parsed.month,
            'day': parsed.day,
            'hour': hour,
            'minute': minute,
            'weekday': (parsed.weekday() + 1) % 7,
            'zodiac': western_zodiac(parsed.month, parsed.day),
            'text': f"{parsed.year}年{parsed.month}月{parsed.day}日",
            'fullDate': date_text,
            'fullTime': f"{original_time}:00",
            'fullDateTime': f"{date_text} {original_time}:00",
        })
        return solar

    @staticmethod
    def _derive_lunar(source: Dict[str, Any], four_pillars: FourPillars, is_fallback: bool) -> Dict[str, Any]:
        legacy_lunar = _as_dict(source.get('lunar'))
        text = legacy_lunar.get('text') or source.get('lunarBirthDate')
        if not text:
            text = FALLBACK_LUNAR_TEXT if is_fallback else f"{four_pillars.year.gan_zhi}年"
        return {
            'year': None,
            'yearInChinese': None,
            'yearGanZhi': four_pillars.year.gan_zhi,
            'month': None,
            'monthInChinese': None,
            'monthGanZhi': four_pillars.month.gan_zhi,
            'isLeapMonth': False,
            'day': None,
            'dayInChinese': None,
            'dayGanZhi': four_pillars.day.gan_zhi,
            'zodiacAnimal': four_pillars.year.branch.animal,
            'text': text,
            'fullText': f"{text} {four_pillars.year.branch.animal}",
            'shortText': '',
        }

    @staticmethod
    def _derive_location(source: Dict[str, Any]) -> Dict[str, Any]:
        longitude = source.get('longitude')
        latitude = source.get('latitude')
        longitude = DEFAULT_LONGITUDE if longitude is None else longitude
        latitude = DEFAULT_LATITUDE if latitude is None else latitude
        return {
            'longitude': longitude,
            'latitude': latitude,
            'province': '',
            'city': '',
            'district': '',
            'text': f"经度: {longitude}°, 纬度: {latitude}°",
        }

    @staticmethod
    def _derive_time(source: Dict[str, Any], original_time: str, four_pillars: FourPillars) -> Dict[str, Any]:
        hour = four_pillars.hour
        shichen = SHICHEN_NAMES[hour.branch.value]
        solar_time = source.get('trueSolarTime') or original_time
        return {
            'original': original_time,
            'solarTime': solar_time,
            'shichen': shichen,
            'shichenGanZhi': hour.gan_zhi,
            'shichenIndex': hour.branch.value,
            'text': f"{solar_time} {shichen}",
        }
