#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
流年运势分析器

以日主五行对流年天干、地支五行的关系（比劫/食伤/财星/官杀/印星）为基础，
给出感情、事业、学业、健康、财运五个维度的评分与提醒。
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from core.data.constants import Stem
from core.data.element_relations import get_relation_group
from core.models.pillars import Pillar
from core.models.record import StandardBaziRecord

logger = logging.getLogger(__name__)

DIMENSIONS = ('love', 'career', 'study', 'health', 'wealth')

# 各维度受益的十神大类
DIMENSION_RELATIONS = {
    'love': ('食伤', '财星'),
    'career': ('官杀', '印星'),
    'study': ('印星', '食伤'),
    'health': ('比劫', '印星'),
    'wealth': ('财星', '食伤'),
}

DESCRIPTIONS = {
    'love': {
        'high': '桃花运旺，适合表白或深入了解对方。单身者有望遇到心仪之人。',
        'mid': '感情平稳，适合维持现状。有伴侣者可增进彼此了解。',
        'low': '感情运一般，宜低调处理感情问题，避免冲突。',
    },
    'career': {
        'high': '事业运势强劲，有晋升机会或获得贵人相助。',
        'mid': '工作平稳，适合稳步推进现有项目。',
        'low': '工作压力较大，宜保持低调，避免冲动决策。',
    },
    'study': {
        'high': '思维活跃，记忆力佳，适合学习新知识或考证。',
        'mid': '学习状态平稳，按计划进行会有收获。',
        'low': '注意力易分散，需要更多耐心和专注。',
    },
    'health': {
        'high': '精力充沛，身体状态良好，适合运动锻炼。',
        'mid': '身体状况稳定，注意规律作息。',
        'low': '注意休息，避免过度劳累，关注小病小痛。',
    },
    'wealth': {
        'high': '财运亨通，有投资机会，但需谨慎选择。',
        'mid': '财运平稳，适合保守理财。',
        'low': '财运一般，宜减少不必要开支，避免冒险投资。',
    },
}

ADVICE = {
    'love': {'high': '积极社交，把握机会', 'mid': '保持真诚，耐心经营', 'low': '低调处理，避免争执'},
    'career': {'high': '展现能力，争取机会', 'mid': '稳步前进，积累经验', 'low': '低调行事，谨言慎行'},
    'study': {'high': '制定计划，全力以赴', 'mid': '坚持学习，温故知新', 'low': '调整状态，循序渐进'},
    'health': {'high': '保持运动，养生保健', 'mid': '规律作息，均衡饮食', 'low': '注意休息，预防疾病'},
    'wealth': {'high': '把握机遇，理性投资', 'mid': '稳健理财，控制消费', 'low': '节省开支，避免借贷'},
}

OVERALL_DESCRIPTIONS = {
    'high': '今年是{gz}年，流年运势总体向好。把握机遇，积极行动，会有不错的发展。',
    'mid': '今年是{gz}年，流年运势平稳。保持耐心，稳步前进，稳中求进。',
    'low': '今年是{gz}年，流年运势有起伏。需谨慎行事，避免冲动，稳扎稳打。',
}

BASE_SCORE = 70
STEM_MATCH_BONUS = 10
BRANCH_MATCH_BONUS = 8
PEER_BONUS = 5
MIN_SCORE = 40
MAX_SCORE = 100
HIGH_LEVEL = 80
LOW_LEVEL = 60


class LiunianAnalyzer:
    """流年运势分析器"""

    @staticmethod
    def year_pillar(target_year: int) -> Pillar:
        """流年干支（按公历年份，不考虑立春）"""
        return Pillar.from_index((target_year - 4) % 60)

    @staticmethod
    def level_of(score: int) -> str:
        if score >= HIGH_LEVEL:
            return 'high'
        if score < LOW_LEVEL:
            return 'low'
        return 'mid'

    @staticmethod
    def dimension_score(dimension: str, gan_relation: str, branch_relation: str, target_year: int) -> int:
        bonus = 0
        for relation in DIMENSION_RELATIONS[dimension]:
            if gan_relation == relation:
                bonus += STEM_MATCH_BONUS
            if branch_relation == relation:
                bonus += BRANCH_MATCH_BONUS
        if '比劫' in (gan_relation, branch_relation):
            bonus += PEER_BONUS
        # 按年份的固定扰动，范围 -7..7
        jitter = ((target_year * 7 + target_year % 11) % 15) - 7
        return min(MAX_SCORE, max(MIN_SCORE, BASE_SCORE + bonus + jitter))

    @staticmethod
    def analyze(record: Union[StandardBaziRecord, Mapping[str, Any]], target_year: int) -> Dict[str, Any]:
        """
        分析流年运势

        Args:
            record: 标准八字记录（或其 dict 结构，兼容旧版 bazi.day 为字符串）
            target_year: 流年年份

        Returns:
            {overall, love, career, study, health, wealth, reminders, dayMaster, liuNianGanZhi, ...}

        Raises:
            ValueError: 记录中取不到合法的日干
        """
        if isinstance(record, StandardBaziRecord):
            record = record.to_dict()
        day_stem = LiunianAnalyzer._extract_day_stem(record)
        if day_stem is None:
            raise ValueError('八字数据无效')
        target_year = int(target_year)

        liunian = LiunianAnalyzer.year_pillar(target_year)
        dm_element = day_stem.element
        gan_relation = get_relation_group(dm_element, liunian.stem.element)
        branch_relation = get_relation_group(dm_element, liunian.branch.element)

        scores = {
            dimension: LiunianAnalyzer.dimension_score(dimension, gan_relation, branch_relation, target_year)
            for dimension in DIMENSIONS
        }
        average = int(sum(scores.values()) / len(scores) + 0.5)
        overall_level = LiunianAnalyzer.level_of(average)

        result: Dict[str, Any] = {
            'overall': {
                'score': average,
                'level': overall_level,
                'description': OVERALL_DESCRIPTIONS[overall_level].format(gz=liunian.gan_zhi),
                'yearGanZhi': liunian.gan_zhi,
                'yearShengXiao': liunian.branch.animal,
            },
        }
        for dimension, score in scores.items():
            level = LiunianAnalyzer.level_of(score)
            result[dimension] = {
                'score': score,
                'level': level,
                'description': DESCRIPTIONS[dimension][level],
                'advice': ADVICE[dimension][level],
            }
        result.update({
            'reminders': LiunianAnalyzer._reminders(scores, gan_relation, branch_relation),
            'dayMaster': day_stem.char,
            'dayMasterElement': dm_element.value,
            'liuNianGanZhi': liunian.gan_zhi,
            'liuNianGan': liunian.stem.char,
            'liuNianBranch': liunian.branch.char,
            'liuNianGanElement': liunian.stem.element.value,
            'liuNianBranchElement': liunian.branch.element.value,
            'liuNianNaYin': liunian.na_yin,
            'ganRelation': gan_relation,
            'branchRelation': branch_relation,
            'year': target_year,
        })
        logger.debug(f"流年分析: 日主{day_stem.char} {target_year}{liunian.gan_zhi} 综合{average}")
        return result

    @staticmethod
    def _extract_day_stem(record: Mapping[str, Any]) -> Optional[Stem]:
        candidates: List[Any] = []
        day_master = record.get('dayMaster')
        if isinstance(day_master, Mapping):
            candidates.append(day_master.get('gan'))
        bazi = record.get('bazi')
        if isinstance(bazi, Mapping):
            day = bazi.get('day')
            if isinstance(day, Mapping):
                day = day.get('ganZhi')
            if isinstance(day, str) and day:
                candidates.append(day[0])
        day = record.get('day')
        if isinstance(day, str) and day:
            candidates.append(day[0])

        for candidate in candidates:
            if isinstance(candidate, str) and candidate:
                try:
                    return Stem.from_char(candidate)
                except ValueError:
                    continue
        return None

    @staticmethod
    def _reminders(scores: Dict[str, int], gan_relation: str, branch_relation: str) -> List[Dict[str, str]]:
        reminders = []
        if scores['love'] < LOW_LEVEL:
            reminders.append({'type': 'warning', 'icon': '💔', 'text': '感情运势偏弱，避免因小事引发争执，保持平和心态。'})
        if scores['career'] >= HIGH_LEVEL:
            reminders.append({'type': 'success', 'icon': '💼', 'text': '事业运势强劲，可主动争取机会，展现能力。'})
        if scores['health'] < LOW_LEVEL:
            reminders.append({'type': 'warning', 'icon': '🏥', 'text': '注意身体健康，避免过度劳累，定期体检。'})
        if scores['wealth'] >= HIGH_LEVEL:
            reminders.append({'type': 'success', 'icon': '💰', 'text': '财运亨通，投资需谨慎，理性分析风险。'})
        if scores['wealth'] < LOW_LEVEL:
            reminders.append({'type': 'warning', 'icon': '💸', 'text': '财运一般，控制开支，避免高风险投资。'})
        if '官杀' in (gan_relation, branch_relation):
            reminders.append({'type': 'info', 'icon': '⚖️', 'text': '今年压力可能较大，注意调节情绪，劳逸结合。'})
        if '比劫' in (gan_relation, branch_relation):
            reminders.append({'type': 'info', 'icon': '🤝', 'text': '今年适合团队合作，但需注意守财，避免冲动消费。'})
        return reminders
