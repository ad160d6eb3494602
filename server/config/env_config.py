#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
统一环境配置管理

提供统一的环境判断和配置读取，避免配置分散
"""

import logging
import os
from typing import Literal, Optional

logger = logging.getLogger(__name__)

# 环境类型定义
Environment = Literal["local", "staging", "production"]


class EnvConfig:
    """
    统一环境配置管理器

    提供统一的环境判断和配置读取接口
    """

    def __init__(self):
        self._env: Environment = "local"
        self._detect_environment()

    def _detect_environment(self):
        """检测当前环境：优先读取 ENV，其次 APP_ENV，默认 local"""
        env_value = os.getenv("ENV", os.getenv("APP_ENV", "local")).lower()

        if env_value in ["staging", "stage"]:
            self._env = "staging"
        elif env_value in ["prod", "production"]:
            self._env = "production"
        else:
            # 未知环境按本地开发处理
            self._env = "local"

    @property
    def env(self) -> Environment:
        return self._env

    @property
    def is_local_dev(self) -> bool:
        return self._env == "local"

    @property
    def is_production(self) -> bool:
        return self._env == "production"

    @property
    def is_staging(self) -> bool:
        return self._env == "staging"

    def get_config(self, key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
        """
        获取配置值（从环境变量）

        Raises:
            ValueError: 如果 required=True 且配置不存在
        """
        value = os.getenv(key, default)
        if required and value is None:
            raise ValueError(f"必需的环境变量 {key} 未设置")
        return value

    def get_bool_config(self, key: str, default: bool = False) -> bool:
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes", "on")

    def get_int_config(self, key: str, default: int = 0) -> int:
        value = os.getenv(key, str(default))
        try:
            return int(value)
        except ValueError:
            logger.warning(f"环境变量 {key}={value!r} 不是整数，使用默认值 {default}")
            return default

    def get_float_config(self, key: str, default: float = 0.0) -> float:
        value = os.getenv(key, str(default))
        try:
            return float(value)
        except ValueError:
            logger.warning(f"环境变量 {key}={value!r} 不是数字，使用默认值 {default}")
            return default


# 全局单例实例
_env_config: Optional[EnvConfig] = None


def get_env_config() -> EnvConfig:
    """获取环境配置实例（全局单例）"""
    global _env_config
    if _env_config is None:
        _env_config = EnvConfig()
    return _env_config


def reset_env_config() -> None:
    """丢弃缓存的环境配置（环境变量变化后重新检测）"""
    global _env_config
    _env_config = None


def is_production() -> bool:
    return get_env_config().is_production
