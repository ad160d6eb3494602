#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字基础常量：天干、地支、五行、六十甲子、纳音

干支与五行在引擎内部一律使用枚举（Stem / Branch / Element），
只在 dict / JSON 边界转换为汉字。
"""

from enum import Enum, IntEnum
from typing import Dict, List


class Element(Enum):
    """五行"""
    WOOD = '木'
    FIRE = '火'
    EARTH = '土'
    METAL = '金'
    WATER = '水'

    @classmethod
    def from_char(cls, char: str) -> 'Element':
        for element in cls:
            if element.value == char:
                return element
        raise ValueError(f"未知五行: {char}")

    @property
    def produces(self) -> 'Element':
        """我生"""
        return ELEMENT_ORDER[(ELEMENT_ORDER.index(self) + 1) % 5]

    @property
    def produced_by(self) -> 'Element':
        """生我"""
        return ELEMENT_ORDER[(ELEMENT_ORDER.index(self) - 1) % 5]

    @property
    def controls(self) -> 'Element':
        """我克"""
        return ELEMENT_ORDER[(ELEMENT_ORDER.index(self) + 2) % 5]

    @property
    def controlled_by(self) -> 'Element':
        """克我"""
        return ELEMENT_ORDER[(ELEMENT_ORDER.index(self) - 2) % 5]


# 相生顺序：木 -> 火 -> 土 -> 金 -> 水 -> 木
ELEMENT_ORDER: List[Element] = [Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER]

STEM_CHARS = '甲乙丙丁戊己庚辛壬癸'
BRANCH_CHARS = '子丑寅卯辰巳午未申酉戌亥'

# 22 个干支字符 -> 五行
CHAR_ELEMENTS: Dict[str, Element] = {
    '甲': Element.WOOD, '乙': Element.WOOD,
    '丙': Element.FIRE, '丁': Element.FIRE,
    '戊': Element.EARTH, '己': Element.EARTH,
    '庚': Element.METAL, '辛': Element.METAL,
    '壬': Element.WATER, '癸': Element.WATER,
    '寅': Element.WOOD, '卯': Element.WOOD,
    '巳': Element.FIRE, '午': Element.FIRE,
    '辰': Element.EARTH, '戌': Element.EARTH, '丑': Element.EARTH, '未': Element.EARTH,
    '申': Element.METAL, '酉': Element.METAL,
    '亥': Element.WATER, '子': Element.WATER,
}

BRANCH_ANIMALS = ['鼠', '牛', '虎', '兔', '龙', '蛇', '马', '羊', '猴', '鸡', '狗', '猪']


class Stem(IntEnum):
    """天干"""
    JIA = 0
    YI = 1
    BING = 2
    DING = 3
    WU = 4
    JI = 5
    GENG = 6
    XIN = 7
    REN = 8
    GUI = 9

    @classmethod
    def from_char(cls, char: str) -> 'Stem':
        index = STEM_CHARS.find(char) if char else -1
        if index < 0:
            raise ValueError(f"未知天干: {char}")
        return cls(index)

    @property
    def char(self) -> str:
        return STEM_CHARS[self.value]

    @property
    def element(self) -> Element:
        return CHAR_ELEMENTS[self.char]

    @property
    def yin_yang(self) -> str:
        return '阳' if self.value % 2 == 0 else '阴'


class Branch(IntEnum):
    """地支"""
    ZI = 0
    CHOU = 1
    YIN = 2
    MAO = 3
    CHEN = 4
    SI = 5
    WU = 6
    WEI = 7
    SHEN = 8
    YOU = 9
    XU = 10
    HAI = 11

    @classmethod
    def from_char(cls, char: str) -> 'Branch':
        index = BRANCH_CHARS.find(char) if char else -1
        if index < 0:
            raise ValueError(f"未知地支: {char}")
        return cls(index)

    @property
    def char(self) -> str:
        return BRANCH_CHARS[self.value]

    @property
    def element(self) -> Element:
        return CHAR_ELEMENTS[self.char]

    @property
    def animal(self) -> str:
        return BRANCH_ANIMALS[self.value]


# 六十甲子
JIAZI_TABLE: List[str] = [STEM_CHARS[i % 10] + BRANCH_CHARS[i % 12] for i in range(60)]

# 纳音（每两个甲子共用一个纳音）
NAYIN_NAMES: List[str] = [
    '海中金', '炉中火', '大林木', '路旁土', '剑锋金', '山头火',
    '涧下水', '城头土', '白蜡金', '杨柳木', '泉中水', '屋上土',
    '霹雳火', '松柏木', '长流水', '沙中金', '山下火', '平地木',
    '壁上土', '金箔金', '覆灯火', '天河水', '大驿土', '钗钏金',
    '桑柘木', '大溪水', '沙中土', '天上火', '石榴木', '大海水',
]

SHICHEN_NAMES: List[str] = [f"{char}时" for char in BRANCH_CHARS]

# 西方星座（按公历月份起始的换座日）
ZODIAC_SIGNS = ['摩羯座', '水瓶座', '双鱼座', '白羊座', '金牛座', '双子座',
                '巨蟹座', '狮子座', '处女座', '天秤座', '天蝎座', '射手座']
ZODIAC_START_DAYS = [20, 19, 21, 20, 21, 22, 23, 23, 23, 24, 23, 22]


def cycle_index(stem: Stem, branch: Branch) -> int:
    """干支在六十甲子中的序号（阴阳不匹配时抛 ValueError）"""
    if stem.value % 2 != branch.value % 2:
        raise ValueError(f"干支阴阳不匹配: {stem.char}{branch.char}")
    return (6 * stem.value - 5 * branch.value) % 60


def nayin_of(index: int) -> str:
    """按六十甲子序号取纳音"""
    return NAYIN_NAMES[(index % 60) // 2]


def is_valid_ganzhi(ganzhi) -> bool:
    """是否为合法的两字干支（如 '甲子'）"""
    return isinstance(ganzhi, str) and ganzhi in JIAZI_TABLE


def western_zodiac(month: int, day: int) -> str:
    """公历月日 -> 西方星座"""
    index = (month - 1 + (1 if day >= ZODIAC_START_DAYS[month - 1] else 0)) % 12
    return ZODIAC_SIGNS[index]
