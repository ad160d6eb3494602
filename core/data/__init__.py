# -*- coding: utf-8 -*-
"""
八字基础数据
"""

from .constants import (
    Element,
    Stem,
    Branch,
    ELEMENT_ORDER,
    CHAR_ELEMENTS,
    JIAZI_TABLE,
    NAYIN_NAMES,
    SHICHEN_NAMES,
    cycle_index,
    nayin_of,
    is_valid_ganzhi,
)
from .element_relations import (
    ELEMENT_RELATIONS,
    get_element_relation,
    get_relation_group,
)

__all__ = [
    'Element', 'Stem', 'Branch', 'ELEMENT_ORDER', 'CHAR_ELEMENTS', 'JIAZI_TABLE',
    'NAYIN_NAMES', 'SHICHEN_NAMES', 'cycle_index', 'nayin_of', 'is_valid_ganzhi',
    'ELEMENT_RELATIONS', 'get_element_relation', 'get_relation_group',
]
