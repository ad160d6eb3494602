#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字后台计算调度

- 通过 Worker 通道异步计算，响应按 taskId 关联
- 定时清扫超时任务（ComputeTimeoutError），超时后到达的响应直接忽略
- Worker 创建失败时所有入口改走同步计算
- 待处理任务表只在事件循环线程中读写
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from core.errors import (
    ComputeTimeoutError,
    ComputeWorkerError,
    INPUT_ERROR_TYPES,
    BaziError,
    WorkerUnavailableError,
)
from core.models.record import StandardBaziRecord
from server.utils.async_executor import run_in_executor
from server.workers.bazi_worker import (
    MSG_CALCULATE_DETAILED_BAZI,
    MSG_CALCULATE_LIU_NIAN_DA_YUN,
    MSG_ERROR,
    calculate_detailed_bazi,
    calculate_liunian,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class TaskKind(str, Enum):
    """任务类型（值即 Worker 消息类型）"""
    PILLARS = MSG_CALCULATE_DETAILED_BAZI
    LIU_NIAN = MSG_CALCULATE_LIU_NIAN_DA_YUN


class TaskState(str, Enum):
    CREATED = 'created'
    SENT = 'sent'
    RESOLVED = 'resolved'
    REJECTED = 'rejected'
    TIMED_OUT = 'timed_out'


@dataclass
class PendingTask:
    """已投递、等待 Worker 响应的任务"""
    task_id: str
    kind: TaskKind
    future: asyncio.Future
    deadline: float
    state: TaskState = TaskState.CREATED


class BaziComputeDispatcher:
    """八字后台计算调度器"""

    def __init__(self, worker_factory: Optional[Callable[[], Any]], timeout: float = DEFAULT_TIMEOUT):
        """
        Args:
            worker_factory: 无参工厂，返回提供 post_message / on_message / terminate 的 Worker 通道；
                            None 表示始终同步计算
            timeout: 单个任务的超时时间（秒）
        """
        self._worker_factory = worker_factory
        self.timeout = timeout
        self._worker = None
        self._worker_unavailable = worker_factory is None
        self._pending: Dict[str, PendingTask] = {}
        self._sweep_handle: Optional[asyncio.TimerHandle] = None

    @property
    def worker_available(self) -> bool:
        return not self._worker_unavailable

    def pending_task_ids(self) -> List[str]:
        return list(self._pending)

    def _ensure_worker(self):
        """按需创建 Worker，失败后不再重试"""
        if self._worker is not None:
            return self._worker
        if self._worker_unavailable:
            return None
        try:
            worker = self._worker_factory()
        except Exception as e:
            self._worker_unavailable = True
            logger.warning(f"Worker 创建失败，后续使用同步计算: {e}")
            return None
        worker.on_message = self._on_message
        self._worker = worker
        logger.info("✓ 八字计算 Worker 已创建")
        return worker

    # === 投递与响应 ================================================================================

    def dispatch(self, kind: TaskKind, payload: Dict[str, Any]) -> asyncio.Future:
        """
        投递任务

        Returns:
            Future：Worker 成功时为 payload，失败时为对应异常

        Raises:
            WorkerUnavailableError: Worker 不可用
        """
        worker = self._ensure_worker()
        if worker is None:
            raise WorkerUnavailableError()

        loop = asyncio.get_running_loop()
        task_id = f"{kind.name.lower()}_{uuid.uuid4().hex}"
        task = PendingTask(
            task_id=task_id,
            kind=kind,
            future=loop.create_future(),
            deadline=loop.time() + self.timeout,
        )
        self._pending[task_id] = task
        try:
            worker.post_message({'type': kind.value, 'taskId': task_id, 'payload': payload})
        except WorkerUnavailableError:
            self._pending.pop(task_id, None)
            raise
        task.state = TaskState.SENT
        if self._sweep_handle is None:
            self._sweep_handle = loop.call_at(task.deadline, self._sweep)
        logger.debug(f"任务已投递: {task_id}")
        return task.future

    def _on_message(self, response: Dict[str, Any]):
        """Worker 响应（在事件循环线程中调用）"""
        task_id = response.get('taskId')
        task = self._pending.pop(task_id, None)
        if task is None:
            logger.debug(f"忽略已超时或未知任务的响应: {task_id}")
            return
        if task.future.done():
            return

        if response.get('error') or response.get('type') == MSG_ERROR:
            task.state = TaskState.REJECTED
            task.future.set_exception(self._error_from_response(response, task_id))
        else:
            task.state = TaskState.RESOLVED
            task.future.set_result(response.get('payload'))

    @staticmethod
    def _error_from_response(response: Dict[str, Any], task_id: str) -> BaziError:
        message = response.get('error') or 'Worker计算失败'
        error_cls = INPUT_ERROR_TYPES.get(response.get('errorType'))
        if error_cls is not None:
            return error_cls(message)
        return ComputeWorkerError(f"{message} ({response.get('errorType')})", task_id=task_id)

    def _sweep(self):
        """拒绝所有已过期的任务，并为剩余任务安排下一次清扫"""
        self._sweep_handle = None
        loop = asyncio.get_running_loop()
        now = loop.time()
        for task_id, task in list(self._pending.items()):
            if task.deadline > now:
                continue
            del self._pending[task_id]
            task.state = TaskState.TIMED_OUT
            if not task.future.done():
                task.future.set_exception(ComputeTimeoutError(task_id, self.timeout))
            logger.warning(f"计算任务超时: {task_id} ({self.timeout}s)")

        if self._pending:
            next_deadline = min(task.deadline for task in self._pending.values())
            self._sweep_handle = loop.call_at(next_deadline, self._sweep)

    async def _run(self, kind: TaskKind, payload: Dict[str, Any], sync_func: Callable) -> Dict[str, Any]:
        if self._ensure_worker() is not None:
            try:
                return await self.dispatch(kind, payload)
            except WorkerUnavailableError as e:
                logger.warning(f"Worker 不可用，使用同步计算: {e.message}")
        return await run_in_executor(sync_func, payload)

    # === 对外入口 ==================================================================================

    async def calculate_bazi(self, birth_payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        计算标准八字记录

        Args:
            birth_payload: {contract, mode?, identityKey?, calculatedForDate?}
        """
        return await self._run(TaskKind.PILLARS, birth_payload, calculate_detailed_bazi)

    async def calculate_liunian(self, record: Union[StandardBaziRecord, Dict[str, Any]],
                                target_year: int) -> Dict[str, Any]:
        return await self._run(TaskKind.LIU_NIAN, self._liunian_payload(record, target_year), calculate_liunian)

    @staticmethod
    def calculate_bazi_sync(birth_payload: Dict[str, Any]) -> Dict[str, Any]:
        return calculate_detailed_bazi(birth_payload)

    @staticmethod
    def calculate_liunian_sync(record: Union[StandardBaziRecord, Dict[str, Any]],
                               target_year: int) -> Dict[str, Any]:
        return calculate_liunian(BaziComputeDispatcher._liunian_payload(record, target_year))

    @staticmethod
    def _liunian_payload(record, target_year: int) -> Dict[str, Any]:
        if isinstance(record, StandardBaziRecord):
            record = record.to_dict()
        return {'record': record, 'targetYear': target_year}

    def close(self):
        """终止 Worker，未完成的任务以 WorkerUnavailableError 拒绝"""
        if self._sweep_handle is not None:
            self._sweep_handle.cancel()
            self._sweep_handle = None
        if self._worker is not None:
            self._worker.terminate()
            self._worker = None
        if self._pending:
            logger.info(f"调度器关闭，拒绝 {len(self._pending)} 个待处理任务")
        for task in self._pending.values():
            task.state = TaskState.REJECTED
            if not task.future.done():
                task.future.set_exception(WorkerUnavailableError("Worker 已终止"))
        self._pending.clear()
