#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
排盘计算模块共享日志工具

计算器在 Worker 线程和 Web 请求中都会被调用，客户端断开时写 stderr 可能触发
Broken pipe，这里统一捕获。
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


class SafeStreamHandler(logging.StreamHandler):
    """安全的 StreamHandler，捕获 Broken pipe 异常"""
    def emit(self, record):
        try:
            super().emit(record)
        except (BrokenPipeError, OSError):
            pass


logger = logging.getLogger("core.calculators")
if not logger.handlers:
    handler = SafeStreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def safe_log(level: str, message: str) -> None:
    """
    安全的日志输出，未知级别按 info 处理
    """
    try:
        logger.log(_LEVELS.get(level, logging.INFO), message)
    except (BrokenPipeError, OSError):
        pass
