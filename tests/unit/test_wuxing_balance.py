#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_wuxing_balance.py
五行平衡分析单元测试
"""

from core.analyzers.wuxing_balance_analyzer import (
    STRENGTH_BALANCED,
    STRENGTH_STRONG,
    STRENGTH_WEAK,
    WuxingBalanceAnalyzer,
)
from core.data.constants import Element
from core.models.pillars import FourPillars


def _analyze(*ganzhi):
    return WuxingBalanceAnalyzer.analyze(FourPillars.from_ganzhi(list(ganzhi)))


class TestCountElements:

    def test_counts_sum_to_eight(self):
        stats, _, _ = _analyze("辛未", "壬辰", "庚午", "壬午")
        assert sum(stats.counts.values()) == 8
        assert stats.to_dict()["counts"] == {"木": 0, "火": 2, "土": 2, "金": 2, "水": 2}

    def test_missing_and_dominant(self):
        stats, _, _ = _analyze("辛未", "壬辰", "庚午", "壬午")
        assert stats.missing_elements == [Element.WOOD]
        # 并列时按木火土金水顺序
        assert stats.dominant_element == Element.FIRE
        assert stats.to_dict()["elementArray"] == ["火", "土", "金", "水", "木"]

    def test_pillar_tags(self):
        stats, _, _ = _analyze("辛未", "壬辰", "庚午", "壬午")
        data = stats.to_dict()
        assert data["year"] == "金土"
        assert data["text"] == "金土 水土 金火 水火"


class TestDayMaster:

    def test_balanced_metal_day(self):
        _, day_master, analysis = _analyze("辛未", "壬辰", "庚午", "壬午")
        assert day_master.gan_zhi == "庚午"
        assert day_master.element == Element.METAL
        assert day_master.yin_yang == "阳"
        assert day_master.strength_type == STRENGTH_BALANCED
        assert day_master.strength_score == 45
        assert day_master.lucky_element == Element.WOOD
        assert day_master.unlucky_element == Element.FIRE
        assert analysis["fortuneType"] == "八字中和"
        assert analysis["luckyElement"] == "木"

    def test_fallback_pillars(self):
        _, day_master, _ = _analyze("甲子", "乙丑", "丙寅", "丁卯")
        assert day_master.strength_type == STRENGTH_BALANCED
        assert day_master.strength_score == 65
        assert day_master.lucky_element == Element.METAL
        assert day_master.unlucky_element == Element.WOOD

    def test_strong_day_master(self):
        """四柱全为甲寅，八字皆木"""
        _, day_master, _ = _analyze("甲寅", "甲寅", "甲寅", "甲寅")
        assert day_master.strength_type == STRENGTH_STRONG
        assert day_master.strength_score == 100
        # 偏强取异党最少者（火土金并列为 0，取火）
        assert day_master.lucky_element == Element.FIRE
        # 主导五行即日主五行且偏强时，忌神为生我的五行
        assert day_master.unlucky_element == Element.WATER

    def test_weak_day_master(self):
        """日主甲木，其余全是金"""
        _, day_master, _ = _analyze("庚申", "庚申", "甲申", "庚申")
        assert day_master.strength_type == STRENGTH_WEAK
        assert day_master.strength_score == 13
        # 偏弱取同党（木、水）最少者
        assert day_master.lucky_element == Element.WATER
        assert day_master.unlucky_element == Element.METAL

    def test_dominant_is_day_element_not_strong(self):
        """主导五行等于日主五行但不偏强时没有忌神"""
        _, day_master, _ = _analyze("庚午", "壬午", "丙午", "壬辰")
        assert day_master.element == Element.FIRE
        assert day_master.unlucky_element is None
