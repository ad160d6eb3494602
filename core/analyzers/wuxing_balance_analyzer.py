#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
五行平衡分析器

功能：
- 统计四柱八个字的五行数量
- 主导五行 / 缺失五行 / 按数量排序的五行数组
- 日主强弱（同党 vs 异党，固定权重的简化判断）
- 喜用神与忌神

强弱判断只是启发式规则，不代表完整的旺衰理论。
"""

import logging
from typing import Any, Dict, Optional, Tuple

from core.data.constants import CHAR_ELEMENTS, ELEMENT_ORDER, Element
from core.models.pillars import DayMaster, FourPillars, WuXingStats

logger = logging.getLogger(__name__)

STRENGTH_STRONG = '偏强'
STRENGTH_WEAK = '偏弱'
STRENGTH_BALANCED = '中和'


class WuxingBalanceAnalyzer:
    """五行平衡分析器"""

    # 同党权重：日主同五行 1.0，生日主的五行 0.8
    SAME_ELEMENT_WEIGHT = 1.0
    GENERATING_ELEMENT_WEIGHT = 0.8

    # 同党与异党差值超过该值即判为偏强/偏弱
    STRENGTH_MARGIN = 3

    TOTAL_CHARACTERS = 8

    @staticmethod
    def analyze(four_pillars: FourPillars) -> Tuple[WuXingStats, DayMaster, Dict[str, Any]]:
        """
        分析四柱五行

        Args:
            four_pillars: 四柱

        Returns:
            (WuXingStats, DayMaster, analysis)
            analysis: {"fortuneType": "八字中和", "luckyElement": "木", "description": "日主庚，五行金，中和"}
        """
        stats = WuxingBalanceAnalyzer.count_elements(four_pillars)
        counts = stats.counts

        day_stem = four_pillars.day.stem
        dm_element = day_stem.element
        generator = dm_element.produced_by

        strength_type, score = WuxingBalanceAnalyzer.judge_strength(counts, dm_element)
        lucky = WuxingBalanceAnalyzer.select_lucky_element(counts, dm_element, strength_type)
        unlucky = WuxingBalanceAnalyzer.select_unlucky_element(stats.dominant_element, dm_element,
                                                               generator, strength_type)

        day_master = DayMaster(
            gan=day_stem,
            zhi=four_pillars.day.branch,
            element=dm_element,
            yin_yang=day_stem.yin_yang,
            strength_type=strength_type,
            strength_score=score,
            lucky_element=lucky,
            unlucky_element=unlucky,
        )
        analysis = {
            'fortuneType': f"八字{strength_type}",
            'luckyElement': lucky.value,
            'description': f"日主{day_stem.char}，五行{dm_element.value}，{strength_type}",
        }
        logger.debug(f"五行分析: {four_pillars.text} -> {strength_type}({score}) 喜{lucky.value}")
        return stats, day_master, analysis

    @staticmethod
    def count_elements(four_pillars: FourPillars) -> WuXingStats:
        counts: Dict[Element, int] = {element: 0 for element in ELEMENT_ORDER}
        for char in four_pillars.characters():
            counts[CHAR_ELEMENTS[char]] += 1

        # max / sorted 均按木火土金水的顺序稳定取值
        dominant = max(ELEMENT_ORDER, key=lambda e: counts[e])
        missing = [element for element in ELEMENT_ORDER if counts[element] == 0]
        element_array = sorted(ELEMENT_ORDER, key=lambda e: -counts[e])
        pillar_tags = {name: pillar.wu_xing for name, pillar in four_pillars.items()}

        return WuXingStats(
            counts=counts,
            dominant_element=dominant,
            missing_elements=missing,
            element_array=element_array,
            pillar_tags=pillar_tags,
        )

    @staticmethod
    def judge_strength(counts: Dict[Element, int], dm_element: Element) -> Tuple[str, int]:
        """同党 = 1.0*日主五行 + 0.8*生我五行，异党 = 8 - 同党"""
        same = (WuxingBalanceAnalyzer.SAME_ELEMENT_WEIGHT * counts[dm_element]
                + WuxingBalanceAnalyzer.GENERATING_ELEMENT_WEIGHT * counts[dm_element.produced_by])
        diff = WuxingBalanceAnalyzer.TOTAL_CHARACTERS - same

        if same - diff > WuxingBalanceAnalyzer.STRENGTH_MARGIN:
            strength_type = STRENGTH_STRONG
        elif diff - same > WuxingBalanceAnalyzer.STRENGTH_MARGIN:
            strength_type = STRENGTH_WEAK
        else:
            strength_type = STRENGTH_BALANCED

        score = int(same / WuxingBalanceAnalyzer.TOTAL_CHARACTERS * 100 + 0.5)
        return strength_type, max(0, min(100, score))

    @staticmethod
    def select_lucky_element(counts: Dict[Element, int], dm_element: Element, strength_type: str) -> Element:
        """
        喜用神

        偏强：取异党（食伤、财、官杀）中最少的五行
        偏弱：取同党（比劫、印）中最少的五行
        中和：取全局最少的五行
        """
        same_side = {dm_element, dm_element.produced_by}
        if strength_type == STRENGTH_STRONG:
            candidates = [e for e in ELEMENT_ORDER if e not in same_side]
        elif strength_type == STRENGTH_WEAK:
            candidates = [e for e in ELEMENT_ORDER if e in same_side]
        else:
            candidates = list(ELEMENT_ORDER)
        return min(candidates, key=lambda e: counts[e])

    @staticmethod
    def select_unlucky_element(dominant: Element, dm_element: Element, generator: Element,
                               strength_type: str) -> Optional[Element]:
        if dominant != dm_element:
            return dominant
        if strength_type == STRENGTH_STRONG:
            return generator
        return None
