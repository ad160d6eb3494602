# -*- coding: utf-8 -*-
"""
配置模块
"""

from .app_config import AppConfig, EngineConfig, RedisConfig, get_config, reload_config
from .env_config import EnvConfig, get_env_config

__all__ = ['AppConfig', 'EngineConfig', 'RedisConfig', 'get_config', 'reload_config',
           'EnvConfig', 'get_env_config']
