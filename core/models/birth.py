#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
出生参数模型

日期必须可解析；时间、经纬度缺失或越界时回退到默认值，并记录到 approximate_fields。
"""

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.errors import InvalidDateFormatError, MissingBirthDateError

# 默认出生时间与坐标（北京）
DEFAULT_BIRTH_TIME = time(12, 30)
DEFAULT_LONGITUDE = 116.40
DEFAULT_LATITUDE = 39.90

# 参与四柱计算的字段
PILLAR_FIELDS = frozenset({'birth_time', 'longitude'})


def parse_birth_date(value: Any) -> date:
    """解析出生日期，缺失抛 MissingBirthDateError，格式错误抛 InvalidDateFormatError"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingBirthDateError()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), '%Y-%m-%d').date()
        except ValueError:
            raise InvalidDateFormatError(f"出生日期格式错误: {value}，应为 YYYY-MM-DD", field='birth_date')
    raise InvalidDateFormatError(f"出生日期类型错误: {type(value).__name__}", field='birth_date')


def parse_birth_time(value: Any) -> time:
    """解析出生时间（HH:MM 或 HH:MM:SS），秒数舍去"""
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        text = value.strip()
        for fmt in ('%H:%M', '%H:%M:%S'):
            try:
                return datetime.strptime(text, fmt).time().replace(second=0)
            except ValueError:
                continue
        raise InvalidDateFormatError(f"出生时间格式错误: {value}，应为 HH:MM", field='birth_time')
    raise InvalidDateFormatError(f"出生时间类型错误: {type(value).__name__}", field='birth_time')


def _coerce_coordinate(value: Any, limit: float) -> Optional[float]:
    """坐标转 float，缺失/非数字/越界返回 None"""
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or not -limit <= number <= limit:
        return None
    return number


class BirthInput(BaseModel):
    """出生参数（不可变）"""
    model_config = ConfigDict(frozen=True)

    birth_date: date = Field(..., description="公历出生日期", examples=["1991-04-30"])
    birth_time: time = Field(DEFAULT_BIRTH_TIME, description="出生时间，缺失时为 12:30")
    longitude: float = Field(DEFAULT_LONGITUDE, description="经度，越界时回退默认值")
    latitude: float = Field(DEFAULT_LATITUDE, description="纬度，越界时回退默认值")
    location_label: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    nickname: Optional[str] = None
    approximate_fields: Tuple[str, ...] = ()

    @model_validator(mode='before')
    @classmethod
    def normalize_fields(cls, data: Any) -> Any:
        """统一解析日期时间、回退坐标（输入错误直接抛出 BaziError，不包装为 ValidationError）"""
        if not isinstance(data, dict):
            return data

        values = dict(data)
        approximate = list(values.get('approximate_fields') or ())

        values['birth_date'] = parse_birth_date(values.get('birth_date'))

        raw_time = values.get('birth_time')
        if raw_time is None or (isinstance(raw_time, str) and not raw_time.strip()):
            values['birth_time'] = DEFAULT_BIRTH_TIME
            approximate.append('birth_time')
        else:
            values['birth_time'] = parse_birth_time(raw_time)

        for field_name, limit, default in (('longitude', 180.0, DEFAULT_LONGITUDE),
                                           ('latitude', 90.0, DEFAULT_LATITUDE)):
            coordinate = _coerce_coordinate(values.get(field_name), limit)
            if coordinate is None:
                coordinate = default
                approximate.append(field_name)
            values[field_name] = coordinate

        values['approximate_fields'] = tuple(dict.fromkeys(approximate))
        return values

    @property
    def is_approximate(self) -> bool:
        return bool(self.approximate_fields)

    @property
    def pillars_approximate(self) -> bool:
        """只有时间或经度回退才影响四柱"""
        return bool(PILLAR_FIELDS & set(self.approximate_fields))

    @property
    def date_str(self) -> str:
        return self.birth_date.strftime('%Y-%m-%d')

    @property
    def time_str(self) -> str:
        return self.birth_time.strftime('%H:%M')

    def fingerprint(self) -> str:
        """出生参数指纹：YYYY-MM-DD|HH:MM|经度(两位小数)"""
        return f"{self.date_str}|{self.time_str}|{self.longitude:.2f}"

    def identity_key(self) -> str:
        """默认身份键：昵称，没有昵称时使用指纹"""
        return self.nickname or self.fingerprint()

    def location_text(self) -> str:
        if self.location_label:
            return self.location_label
        parts = [part for part in (self.province, self.city, self.district) if part]
        return ''.join(parts)

    @classmethod
    def from_contract(cls, contract: Optional[Dict[str, Any]]) -> 'BirthInput':
        """
        从外部输入契约构造

        {birthDate, birthTime, birthLocation{lng, lat, province?, city?, district?}, nickname?}
        """
        contract = contract or {}
        location = contract.get('birthLocation') or {}
        return cls(
            birth_date=contract.get('birthDate'),
            birth_time=contract.get('birthTime'),
            longitude=location.get('lng'),
            latitude=location.get('lat'),
            location_label=location.get('label') or contract.get('locationLabel'),
            province=location.get('province'),
            city=location.get('city'),
            district=location.get('district'),
            nickname=contract.get('nickname') or None,
        )

    def to_contract(self) -> Dict[str, Any]:
        """转换回外部输入契约（Worker 消息使用）"""
        location: Dict[str, Any] = {
            'lng': None if 'longitude' in self.approximate_fields else self.longitude,
            'lat': None if 'latitude' in self.approximate_fields else self.latitude,
        }
        for key in ('province', 'city', 'district'):
            value = getattr(self, key)
            if value:
                location[key] = value
        if self.location_label:
            location['label'] = self.location_label
        contract: Dict[str, Any] = {
            'birthDate': self.date_str,
            'birthTime': None if 'birth_time' in self.approximate_fields else self.time_str,
            'birthLocation': location,
        }
        if self.nickname:
            contract['nickname'] = self.nickname
        return contract
