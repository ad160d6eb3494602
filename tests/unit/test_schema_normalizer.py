#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_schema_normalizer.py
八字记录归一化单元测试
"""

import copy

import pytest

from core.calculators.bazi_core_calculator import MODE_MANUAL
from core.calculators.bazi_record_builder import StandardRecordBuilder
from server.services.bazi_schema_normalizer import (
    BaziSchemaNormalizer,
    FALLBACK_LUNAR_TEXT,
    FALLBACK_PILLARS,
)


class TestFallback:

    def test_empty_record_is_valid(self):
        record = BaziSchemaNormalizer.normalize({})
        assert record["bazi"]["text"] == " ".join(FALLBACK_PILLARS)
        assert record["meta"]["dataSource"] == "fallback"
        assert record["birth"]["lunar"]["text"] == FALLBACK_LUNAR_TEXT
        assert record["birth"]["location"]["longitude"] == 116.40
        assert record["birth"]["time"]["original"] == "12:30"

        validation = BaziSchemaNormalizer.validate(record)
        assert validation["valid"] is True
        assert validation["errors"] == []

    def test_non_dict_input(self):
        assert BaziSchemaNormalizer.normalize(None)["bazi"]["day"]["ganZhi"] == "丙寅"

    def test_invalid_pillar_uses_fallback(self):
        record = BaziSchemaNormalizer.normalize({"year": "辛未", "month": "壬辰", "day": "庚X", "hour": "壬午"})
        assert record["bazi"]["text"] == "甲子 乙丑 丙寅 丁卯"
        # 五行与日主按兜底四柱计算
        assert record["dayMaster"]["gan"] == "丙"
        assert record["wuXing"]["counts"] == {"木": 4, "火": 2, "土": 1, "金": 0, "水": 1}


class TestLegacyConversion:

    def test_from_legacy(self, legacy_record):
        record = BaziSchemaNormalizer.from_legacy(legacy_record)
        assert BaziSchemaNormalizer.is_standard(record)
        assert record["bazi"]["text"] == "辛未 壬辰 庚午 壬午"
        assert record["meta"]["dataSource"] == "converted"
        assert record["meta"]["nickname"] == "小明"
        assert record["birth"]["solar"]["fullDate"] == "1991-04-30"
        assert record["birth"]["solar"]["zodiac"] == "金牛座"
        assert record["birth"]["time"]["solarTime"] == "12:15"
        assert record["birth"]["lunar"]["text"] == "辛未年 三月十六"
        assert record["dayMaster"]["ganZhi"] == "庚午"

    def test_string_pillars_inside_bazi(self):
        record = BaziSchemaNormalizer.normalize({"bazi": {"year": "辛未", "month": "壬辰", "day": "庚午", "hour": "壬午"}})
        assert record["bazi"]["day"]["gan"] == "庚"
        assert record["bazi"]["day"]["naYin"] == "路旁土"

    @pytest.mark.parametrize("legacy", [
        {"year": "辛未", "month": "壬辰", "day": "庚午", "hour": "壬午", "birthDate": "1991-04-30", "birthTime": 1230},
        {"year": "辛未", "month": "壬辰", "day": "庚午", "hour": "壬午",
         "birth": {"solar": {"fullDate": "1991-04-30"}, "time": {"original": 1230}}},
    ])
    def test_non_string_birth_time(self, legacy):
        """出生时间不是字符串时按默认时间处理"""
        record = BaziSchemaNormalizer.normalize(legacy)
        assert record["bazi"]["day"]["ganZhi"] == "庚午"
        assert record["birth"]["solar"]["fullDate"] == "1991-04-30"
        assert record["birth"]["solar"]["hour"] == 12
        assert record["birth"]["solar"]["minute"] == 30
        assert BaziSchemaNormalizer.validate(record)["valid"] is True

    def test_to_legacy(self, legacy_record):
        legacy = BaziSchemaNormalizer.to_legacy(BaziSchemaNormalizer.normalize(legacy_record))
        assert (legacy["year"], legacy["month"], legacy["day"], legacy["hour"]) == ("辛未", "壬辰", "庚午", "壬午")
        assert legacy["bazi"]["text"] == "辛未 壬辰 庚午 壬午"
        assert legacy["trueSolarTime"] == "12:15"
        assert legacy["birthDate"] == "1991-04-30"
        assert legacy["nickname"] == "小明"


class TestNormalizeProperties:

    def test_idempotent_for_legacy(self, legacy_record):
        once = BaziSchemaNormalizer.normalize(legacy_record)
        assert BaziSchemaNormalizer.normalize(once) == once

    def test_idempotent_for_fallback(self):
        once = BaziSchemaNormalizer.normalize({})
        assert BaziSchemaNormalizer.normalize(once) == once

    def test_idempotent_for_built_record(self, sample_birth):
        built = StandardRecordBuilder.build(sample_birth, mode=MODE_MANUAL).to_dict()
        once = BaziSchemaNormalizer.normalize(built)
        assert once == built
        assert BaziSchemaNormalizer.normalize(once) == once

    def test_input_not_mutated(self, legacy_record):
        snapshot = copy.deepcopy(legacy_record)
        BaziSchemaNormalizer.normalize(legacy_record)
        assert legacy_record == snapshot

    def test_extra_analysis_keys_kept(self, legacy_record):
        legacy_record["analysis"] = {"note": "保留", "fortuneType": "被覆盖"}
        record = BaziSchemaNormalizer.normalize(legacy_record)
        assert record["analysis"]["note"] == "保留"
        assert record["analysis"]["fortuneType"] == "八字中和"


class TestAccessors:

    def test_display_pillars(self, legacy_record):
        pillars = BaziSchemaNormalizer.get_display_pillars(legacy_record)
        assert pillars["day"] == "庚午"
        assert pillars["text"] == "辛未 壬辰 庚午 壬午"

    def test_display_pillars_fallback(self):
        assert BaziSchemaNormalizer.get_display_pillars("garbage")["year"] == "甲子"

    def test_true_solar_time_and_lunar_text(self, legacy_record):
        assert BaziSchemaNormalizer.get_true_solar_time(legacy_record) == "12:15"
        assert BaziSchemaNormalizer.get_lunar_text(legacy_record) == "辛未年 三月十六"
        standard = BaziSchemaNormalizer.normalize(legacy_record)
        assert BaziSchemaNormalizer.get_true_solar_time(standard) == "12:15"
        assert BaziSchemaNormalizer.get_shichen(standard) == "午时"
