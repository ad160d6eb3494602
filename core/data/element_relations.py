#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
五行生克关系模块

提供五行生克关系的常量定义和计算函数。
"""

from typing import Dict, Literal

from core.data.constants import Element, ELEMENT_ORDER

# 五行关系类型
RelationType = Literal['same', 'me_producing', 'me_controlling', 'producing_me', 'controlling_me']

# 五行生克关系定义
ELEMENT_RELATIONS: Dict[Element, Dict[str, Element]] = {
    element: {
        'produces': element.produces,
        'controls': element.controls,
        'produced_by': element.produced_by,
        'controlled_by': element.controlled_by,
    }
    for element in ELEMENT_ORDER
}

# 关系 -> 十神大类（流年分析使用）
RELATION_GROUPS: Dict[str, str] = {
    'same': '比劫',
    'me_producing': '食伤',
    'me_controlling': '财星',
    'controlling_me': '官杀',
    'producing_me': '印星',
}


def get_element_relation(day_element: Element, target_element: Element) -> RelationType:
    """
    判断五行生克关系

    Args:
        day_element: 日主五行
        target_element: 目标五行

    Returns:
        RelationType: 关系类型
        - 'same': 同元素
        - 'me_producing': 我生
        - 'me_controlling': 我克
        - 'producing_me': 生我
        - 'controlling_me': 克我
    """
    if day_element == target_element:
        return 'same'

    relations = ELEMENT_RELATIONS[day_element]
    if target_element == relations['produces']:
        return 'me_producing'
    if target_element == relations['controls']:
        return 'me_controlling'
    if target_element == relations['produced_by']:
        return 'producing_me'
    return 'controlling_me'


def get_relation_group(day_element: Element, target_element: Element) -> str:
    """日主与目标五行的十神大类（比劫/食伤/财星/官杀/印星）"""
    return RELATION_GROUPS[get_element_relation(day_element, target_element)]
