#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字计算 Worker 消息处理

在后台线程中执行，输入输出都是可序列化的 dict：
    请求：{type, taskId, payload}
    响应：{type, taskId, payload, error, errorType}

处理函数从不抛出异常，任何错误都放在响应的 error / errorType 中。
"""

import logging
from typing import Any, Callable, Dict

from core.analyzers.liunian_analyzer import LiunianAnalyzer
from core.calculators.bazi_core_calculator import MODE_ORACLE
from core.calculators.bazi_record_builder import StandardRecordBuilder
from core.errors import BaziError
from core.models.birth import BirthInput

logger = logging.getLogger(__name__)

MSG_CALCULATE_DETAILED_BAZI = 'CALCULATE_DETAILED_BAZI'
MSG_CALCULATE_LIU_NIAN_DA_YUN = 'CALCULATE_LIU_NIAN_DA_YUN'
MSG_ERROR = 'ERROR'


def calculate_detailed_bazi(payload: Dict[str, Any]) -> Dict[str, Any]:
    """payload: {contract, mode?, identityKey?, calculatedForDate?} -> 标准记录 dict"""
    birth = BirthInput.from_contract(payload.get('contract'))
    record = StandardRecordBuilder.build(
        birth,
        mode=payload.get('mode') or MODE_ORACLE,
        identity_key=payload.get('identityKey'),
        calculated_for_date=payload.get('calculatedForDate'),
    )
    return record.to_dict()


def calculate_liunian(payload: Dict[str, Any]) -> Dict[str, Any]:
    """payload: {record, targetYear} -> 流年分析"""
    return LiunianAnalyzer.analyze(payload.get('record') or {}, payload['targetYear'])


HANDLERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    MSG_CALCULATE_DETAILED_BAZI: calculate_detailed_bazi,
    MSG_CALCULATE_LIU_NIAN_DA_YUN: calculate_liunian,
}


def _response(msg_type: str, task_id: Any, payload=None, error=None, error_type=None) -> Dict[str, Any]:
    return {
        'type': msg_type,
        'taskId': task_id,
        'payload': payload,
        'error': error,
        'errorType': error_type,
    }


def handle_message(message: Dict[str, Any]) -> Dict[str, Any]:
    """处理一条 Worker 消息"""
    message = message if isinstance(message, dict) else {}
    msg_type = message.get('type')
    task_id = message.get('taskId')

    handler = HANDLERS.get(msg_type)
    if handler is None:
        logger.warning(f"未知的 Worker 消息类型: {msg_type}")
        return _response(MSG_ERROR, task_id, error=f"未知的消息类型: {msg_type}", error_type='unknown_message')

    try:
        return _response(msg_type, task_id, payload=handler(message.get('payload') or {}))
    except BaziError as e:
        logger.warning(f"Worker 计算失败 [{task_id}]: {e.error_type} {e.message}")
        return _response(msg_type, task_id, error=e.message, error_type=e.error_type)
    except Exception as e:
        logger.error(f"Worker 计算异常 [{task_id}]: {e}", exc_info=True)
        return _response(msg_type, task_id, error=str(e), error_type=type(e).__name__)
