# -*- coding: utf-8 -*-
"""
服务器工具模块
"""

from .cache_multi_level import L1MemoryCache, L2RedisCache, MultiLevelCache

__all__ = ['L1MemoryCache', 'L2RedisCache', 'MultiLevelCache']
