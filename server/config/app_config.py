#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
统一应用配置管理
所有配置统一从这里读取，避免配置分散
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from server.config.env_config import get_env_config

# 30 天
DEFAULT_CACHE_TTL = 30 * 24 * 3600


@dataclass
class RedisConfig:
    """Redis 配置"""
    host: str = 'localhost'
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    max_connections: int = 100
    socket_timeout: float = 2.0

    @classmethod
    def from_env(cls) -> 'RedisConfig':
        """从环境变量创建配置"""
        env_config = get_env_config()
        return cls(
            host=os.getenv('REDIS_HOST', 'localhost'),
            port=env_config.get_int_config('REDIS_PORT', 6379),
            db=env_config.get_int_config('REDIS_DB', 0),
            password=os.getenv('REDIS_PASSWORD') or None,
            max_connections=env_config.get_int_config('REDIS_MAX_CONNECTIONS', 100),
            socket_timeout=env_config.get_float_config('REDIS_SOCKET_TIMEOUT', 2.0),
        )


@dataclass
class EngineConfig:
    """八字计算引擎配置"""
    worker_timeout: float = 5.0
    worker_enabled: bool = True
    cache_l1_max_size: int = 50000
    cache_l1_ttl: int = DEFAULT_CACHE_TTL
    cache_l2_ttl: int = DEFAULT_CACHE_TTL
    cache_use_redis: bool = False
    default_mode: str = 'oracle'

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """从环境变量创建配置"""
        env_config = get_env_config()
        mode = (env_config.get_config('BAZI_DEFAULT_MODE', default='oracle') or 'oracle').lower()
        return cls(
            worker_timeout=env_config.get_float_config('BAZI_WORKER_TIMEOUT', 5.0),
            worker_enabled=env_config.get_bool_config('BAZI_WORKER_ENABLED', default=True),
            cache_l1_max_size=env_config.get_int_config('BAZI_CACHE_L1_MAX_SIZE', 50000),
            cache_l1_ttl=env_config.get_int_config('BAZI_CACHE_L1_TTL', DEFAULT_CACHE_TTL),
            cache_l2_ttl=env_config.get_int_config('BAZI_CACHE_L2_TTL', DEFAULT_CACHE_TTL),
            cache_use_redis=env_config.get_bool_config('BAZI_CACHE_USE_REDIS', default=False),
            default_mode=mode if mode in ('oracle', 'manual') else 'oracle',
        )


@dataclass
class AppConfig:
    """应用配置"""
    env: str = 'local'
    debug: bool = False
    log_level: str = 'INFO'

    # 子配置
    redis: RedisConfig = field(default_factory=RedisConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """从环境变量创建完整配置"""
        env_config = get_env_config()
        return cls(
            env=env_config.env,
            debug=env_config.get_bool_config('DEBUG', default=False),
            log_level=(env_config.get_config('LOG_LEVEL', default='INFO') or 'INFO').upper(),
            redis=RedisConfig.from_env(),
            engine=EngineConfig.from_env(),
        )


# 全局配置实例（单例模式）
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例（单例）"""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reload_config() -> AppConfig:
    """重新加载配置（环境变量变化后使用）"""
    global _config
    _config = AppConfig.from_env()
    return _config
