#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字引擎异常体系

- 输入类错误（缺少/非法出生日期）向调用方传播
- 计算层错误（超时、Worker 不可用、Worker 报错）由服务层降级恢复
- 结构不完整只记录警告，不抛出
"""

from typing import Dict, Optional, Type


class BaziError(Exception):
    """
    八字引擎异常基类

    与业务异常保持同样的字段：message / code / error_type
    """
    def __init__(self, message: str, code: int = 400, error_type: str = "bazi_error"):
        self.message = message
        self.code = code
        self.error_type = error_type
        super().__init__(message)


class BaziInputError(BaziError):
    """出生参数错误（不可恢复，直接返回给调用方）"""


class MissingBirthDateError(BaziInputError):
    """缺少出生日期"""
    def __init__(self, message: str = "出生日期不能为空"):
        super().__init__(message, code=400, error_type="missing_birth_date")


class InvalidDateFormatError(BaziInputError):
    """出生日期/时间无法解析"""
    def __init__(self, message: str = "出生日期格式错误，应为 YYYY-MM-DD", field: Optional[str] = None):
        self.field = field
        super().__init__(message, code=400, error_type="invalid_date_format")


class ComputeError(BaziError):
    """后台计算错误基类（存在降级路径）"""
    def __init__(self, message: str, error_type: str = "compute_error"):
        super().__init__(message, code=503, error_type=error_type)


class ComputeTimeoutError(ComputeError):
    """Worker 未在时限内返回"""
    def __init__(self, task_id: str, timeout: float):
        self.task_id = task_id
        self.timeout = timeout
        super().__init__(f"计算超时: {task_id} ({timeout}s)", error_type="compute_timeout")


class ComputeWorkerError(ComputeError):
    """Worker 返回了错误"""
    def __init__(self, message: str = "Worker计算失败", task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message, error_type="compute_worker_error")


class WorkerUnavailableError(ComputeError):
    """Worker 创建失败（运行环境不支持后台执行）"""
    def __init__(self, message: str = "Worker 不可用"):
        super().__init__(message, error_type="worker_unavailable")


class SchemaValidationWarning(UserWarning):
    """记录结构不完整（只作为警告记录，渲染时使用兜底字段）"""


class CacheInconsistencyMiss:
    """
    缓存指纹不一致的未命中标记（不是异常）

    仅用于日志与统计，表示缓存中的记录属于旧的出生参数。
    """
    def __init__(self, identity_key: str, stored_fingerprint: str, current_fingerprint: str):
        self.identity_key = identity_key
        self.stored_fingerprint = stored_fingerprint
        self.current_fingerprint = current_fingerprint

    def __repr__(self) -> str:
        return (f"CacheInconsistencyMiss({self.identity_key!r}: "
                f"{self.stored_fingerprint!r} != {self.current_fingerprint!r})")


# Worker 消息中的 errorType -> 可还原的输入错误类型
INPUT_ERROR_TYPES: Dict[str, Type[BaziInputError]] = {
    "missing_birth_date": MissingBirthDateError,
    "invalid_date_format": InvalidDateFormatError,
}
