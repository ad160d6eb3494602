#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tests/unit/test_birth_input.py
出生参数解析与默认值
"""

from datetime import date, time

import pytest

from core.errors import InvalidDateFormatError, MissingBirthDateError
from core.models.birth import BirthInput, DEFAULT_BIRTH_TIME, DEFAULT_LATITUDE, DEFAULT_LONGITUDE


class TestBirthInputParsing:

    def test_from_contract(self, sample_birth):
        assert sample_birth.birth_date == date(1991, 4, 30)
        assert sample_birth.birth_time == time(12, 30)
        assert sample_birth.longitude == pytest.approx(116.40)
        assert sample_birth.is_approximate is False
        assert sample_birth.location_text() == "北京市北京市"

    def test_defaults_are_marked_approximate(self):
        birth = BirthInput.from_contract({"birthDate": "2000-01-01"})
        assert birth.birth_time == DEFAULT_BIRTH_TIME
        assert birth.longitude == DEFAULT_LONGITUDE
        assert birth.latitude == DEFAULT_LATITUDE
        assert birth.approximate_fields == ("birth_time", "longitude", "latitude")

    def test_out_of_range_coordinate_falls_back(self):
        birth = BirthInput(birth_date="2000-01-01", birth_time="08:00", longitude=200, latitude="abc")
        assert birth.longitude == DEFAULT_LONGITUDE
        assert birth.latitude == DEFAULT_LATITUDE
        assert set(birth.approximate_fields) == {"longitude", "latitude"}

    def test_missing_latitude_does_not_affect_pillars(self):
        """纬度回退不影响四柱，只有时间和经度参与"""
        birth = BirthInput(birth_date="1991-04-30", birth_time="12:30", longitude=116.40)
        assert birth.approximate_fields == ("latitude",)
        assert birth.is_approximate is True
        assert birth.pillars_approximate is False

        no_longitude = BirthInput(birth_date="1991-04-30", birth_time="12:30")
        assert no_longitude.pillars_approximate is True

    def test_seconds_are_dropped(self):
        birth = BirthInput(birth_date="2000-01-01", birth_time="08:05:59", longitude=120)
        assert birth.time_str == "08:05"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_date(self, value):
        with pytest.raises(MissingBirthDateError) as exc_info:
            BirthInput(birth_date=value)
        assert exc_info.value.error_type == "missing_birth_date"
        assert exc_info.value.code == 400

    @pytest.mark.parametrize("value", ["1991-13-01", "30/04/1991", "yesterday"])
    def test_invalid_date(self, value):
        with pytest.raises(InvalidDateFormatError) as exc_info:
            BirthInput(birth_date=value)
        assert exc_info.value.field == "birth_date"

    def test_invalid_time(self):
        with pytest.raises(InvalidDateFormatError) as exc_info:
            BirthInput(birth_date="1991-04-30", birth_time="25:99")
        assert exc_info.value.field == "birth_time"


class TestIdentity:

    def test_fingerprint(self, sample_birth):
        assert sample_birth.fingerprint() == "1991-04-30|12:30|116.40"

    def test_identity_key_prefers_nickname(self, sample_birth):
        assert sample_birth.identity_key() == "小明"
        anonymous = BirthInput(birth_date="1991-04-30", birth_time="12:30", longitude=116.4)
        assert anonymous.identity_key() == anonymous.fingerprint()

    def test_contract_round_trip_keeps_fingerprint(self):
        birth = BirthInput.from_contract({"birthDate": "1991-04-30"})
        again = BirthInput.from_contract(birth.to_contract())
        assert again.fingerprint() == birth.fingerprint()
        assert again.approximate_fields == birth.approximate_fields

    def test_frozen(self, sample_birth):
        with pytest.raises(Exception):
            sample_birth.nickname = "other"
