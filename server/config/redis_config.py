#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Redis 配置模块

连接在第一次使用时建立；Redis 不可达时返回 None，缓存只使用 L1。
"""

import logging
from typing import Optional

import redis
from redis.connection import ConnectionPool

from server.config.app_config import RedisConfig

logger = logging.getLogger(__name__)

# 全局 Redis 连接池
redis_pool: Optional[ConnectionPool] = None
redis_client: Optional[redis.Redis] = None


def init_redis(config: Optional[RedisConfig] = None) -> bool:
    """
    初始化 Redis 连接

    Args:
        config: Redis 配置，缺省从环境变量读取

    Returns:
        bool: 是否连接成功
    """
    global redis_pool, redis_client

    config = config or RedisConfig.from_env()
    redis_pool = ConnectionPool(
        host=config.host,
        port=config.port,
        db=config.db,
        password=config.password,
        max_connections=config.max_connections,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_timeout,
        decode_responses=False,  # 存储 JSON 字节，手动序列化/反序列化
    )
    client = redis.Redis(connection_pool=redis_pool)

    try:
        client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis 连接失败（可选依赖，缓存仅使用内存）: {config.host}:{config.port} {e}")
        redis_client = None
        return False

    redis_client = client
    logger.info(f"✓ Redis 连接成功: {config.host}:{config.port}")
    return True


def get_redis_client(config: Optional[RedisConfig] = None) -> Optional[redis.Redis]:
    """获取 Redis 客户端（首次调用时初始化）"""
    if redis_client is None:
        init_redis(config)
    return redis_client


def close_redis() -> None:
    """关闭连接池"""
    global redis_pool, redis_client
    if redis_pool is not None:
        redis_pool.disconnect()
    redis_pool = None
    redis_client = None
