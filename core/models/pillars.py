#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四柱与五行统计的数据结构
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from core.data.constants import (
    Branch,
    Element,
    ELEMENT_ORDER,
    Stem,
    cycle_index,
    nayin_of,
)

PILLAR_NAMES = ('year', 'month', 'day', 'hour')


@dataclass(frozen=True)
class Pillar:
    """单柱（天干 + 地支）"""
    stem: Stem
    branch: Branch
    na_yin: str = ''

    def __post_init__(self):
        index = cycle_index(self.stem, self.branch)
        if not self.na_yin:
            object.__setattr__(self, 'na_yin', nayin_of(index))

    @classmethod
    def from_index(cls, index: int) -> 'Pillar':
        index %= 60
        return cls(Stem(index % 10), Branch(index % 12))

    @classmethod
    def from_ganzhi(cls, ganzhi: str, na_yin: str = '') -> 'Pillar':
        if not isinstance(ganzhi, str) or len(ganzhi) != 2:
            raise ValueError(f"干支格式错误: {ganzhi}")
        return cls(Stem.from_char(ganzhi[0]), Branch.from_char(ganzhi[1]), na_yin)

    @property
    def element(self) -> Element:
        return self.stem.element

    @property
    def gan_zhi(self) -> str:
        return self.stem.char + self.branch.char

    @property
    def cycle_index(self) -> int:
        return cycle_index(self.stem, self.branch)

    @property
    def wu_xing(self) -> str:
        """柱五行标签：天干五行 + 地支五行（如 金土）"""
        return self.stem.element.value + self.branch.element.value

    def to_dict(self) -> Dict[str, str]:
        return {
            'ganZhi': self.gan_zhi,
            'gan': self.stem.char,
            'zhi': self.branch.char,
            'wuXing': self.wu_xing,
            'naYin': self.na_yin,
        }


@dataclass(frozen=True)
class FourPillars:
    """四柱"""
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Pillar
    is_approximate: bool = False

    def __iter__(self) -> Iterator[Pillar]:
        return iter((self.year, self.month, self.day, self.hour))

    def items(self) -> List[Tuple[str, Pillar]]:
        return list(zip(PILLAR_NAMES, self))

    @property
    def text(self) -> str:
        return ' '.join(pillar.gan_zhi for pillar in self)

    def characters(self) -> List[str]:
        """八个干支字符"""
        chars = []
        for pillar in self:
            chars.extend([pillar.stem.char, pillar.branch.char])
        return chars

    @classmethod
    def from_ganzhi(cls, ganzhi_list: Sequence[str], is_approximate: bool = False) -> 'FourPillars':
        if len(ganzhi_list) != 4:
            raise ValueError(f"四柱数量错误: {ganzhi_list}")
        year, month, day, hour = (Pillar.from_ganzhi(gz) for gz in ganzhi_list)
        return cls(year, month, day, hour, is_approximate)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {name: pillar.to_dict() for name, pillar in self.items()}
        data['text'] = self.text
        return data


@dataclass(frozen=True)
class WuXingStats:
    """八字五行统计"""
    counts: Dict[Element, int]
    dominant_element: Element
    missing_elements: List[Element]
    element_array: List[Element]
    pillar_tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {name: self.pillar_tags.get(name, '') for name in PILLAR_NAMES}
        data['text'] = ' '.join(self.pillar_tags.get(name, '') for name in PILLAR_NAMES)
        data['counts'] = {element.value: self.counts.get(element, 0) for element in ELEMENT_ORDER}
        data['elementArray'] = [element.value for element in self.element_array]
        data['dominantElement'] = self.dominant_element.value
        data['missingElements'] = [element.value for element in self.missing_elements]
        return data


@dataclass(frozen=True)
class DayMaster:
    """日主"""
    gan: Stem
    zhi: Branch
    element: Element
    yin_yang: str
    strength_type: str
    strength_score: int
    lucky_element: Optional[Element] = None
    unlucky_element: Optional[Element] = None

    @property
    def gan_zhi(self) -> str:
        return self.gan.char + self.zhi.char

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gan': self.gan.char,
            'zhi': self.zhi.char,
            'ganZhi': self.gan_zhi,
            'element': self.element.value,
            'yinYang': self.yin_yang,
            'strength': {'type': self.strength_type, 'score': self.strength_score},
            'luckyElement': self.lucky_element.value if self.lucky_element else None,
            'unluckyElement': self.unlucky_element.value if self.unlucky_element else None,
        }
