#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
异步执行器工具

- ThreadWorkerChannel：单线程的后台 Worker 通道（post_message / on_message / terminate），
  响应通过 call_soon_threadsafe 回到所属事件循环
- run_in_executor：在共享线程池中执行同步函数（同步降级路径使用，避免阻塞事件循环）
"""

import asyncio
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from core.errors import WorkerUnavailableError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Dict[str, Any]]

# 全局线程池执行器（单例）
_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


class ThreadWorkerChannel:
    """
    单线程 Worker 通道

    所有消息在同一个后台线程中按提交顺序处理（一个逻辑 Worker，不是线程池）。
    必须在事件循环中创建。
    """

    def __init__(self, handler: MessageHandler, loop: Optional[asyncio.AbstractEventLoop] = None,
                 name: str = "bazi_worker"):
        try:
            self._loop = loop or asyncio.get_running_loop()
        except RuntimeError as e:
            raise WorkerUnavailableError(f"Worker 需要在事件循环中创建: {e}")
        self._handler = handler
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._terminated = False
        self.on_message: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def terminated(self) -> bool:
        return self._terminated

    def post_message(self, message: Dict[str, Any]) -> None:
        """投递消息（非阻塞）"""
        if self._terminated:
            raise WorkerUnavailableError("Worker 已终止")
        self._executor.submit(self._run, message)

    def _run(self, message: Dict[str, Any]) -> None:
        response = self._handler(message)
        if self._terminated:
            return
        callback = self.on_message
        if callback is None:
            logger.warning(f"Worker 响应没有接收者，已丢弃: {message.get('taskId')}")
            return
        try:
            self._loop.call_soon_threadsafe(callback, response)
        except RuntimeError:
            # 事件循环已关闭
            logger.debug(f"事件循环已关闭，丢弃 Worker 响应: {message.get('taskId')}")

    def terminate(self) -> None:
        """终止 Worker，未处理的消息直接丢弃"""
        if self._terminated:
            return
        self._terminated = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("✓ Worker 已终止")


def get_executor() -> ThreadPoolExecutor:
    """
    获取全局线程池执行器（单例模式）

    - 本地开发：CPU核心数 * 2，最大16
    - 其他环境：CPU核心数 * 2，最大64
    """
    global _executor

    if _executor is None:
        with _executor_lock:
            if _executor is None:
                from server.config.env_config import get_env_config

                cpu_count = os.cpu_count() or 4
                limit = 16 if get_env_config().is_local_dev else 64
                max_workers = min(cpu_count * 2, limit)
                _executor = ThreadPoolExecutor(
                    max_workers=max_workers,
                    thread_name_prefix="async_executor"
                )
                logger.info(f"✓ 全局线程池执行器已创建 (max_workers={max_workers})")

    return _executor


async def run_in_executor(func: Callable, *args, **kwargs) -> Any:
    """
    在线程池中执行同步函数（便捷函数）
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), lambda: func(*args, **kwargs))


def shutdown_executor():
    """关闭线程池执行器（用于优雅关闭）"""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None
        logger.info("✓ 全局线程池执行器已关闭")
