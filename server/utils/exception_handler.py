"""
统一异常处理中间件

BaziError 按其 code / error_type 返回 JSON；输入错误额外附带兜底记录，
调用方仍可渲染默认排盘。
"""

import logging
import traceback
from typing import Any, Callable, Dict

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.errors import BaziError, BaziInputError
from server.config.env_config import is_production

logger = logging.getLogger(__name__)

# 生产环境不显示详细错误
PRODUCTION_MODE = is_production()


def bazi_error_content(e: BaziError) -> Dict[str, Any]:
    """BaziError 的响应体"""
    content: Dict[str, Any] = {
        "success": False,
        "error": e.message,
        "error_type": e.error_type,
    }
    if isinstance(e, BaziInputError):
        from server.services.bazi_schema_normalizer import BaziSchemaNormalizer
        content["fallback"] = BaziSchemaNormalizer.normalize({})
    return content


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """异常处理中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except BaziError as e:
            logger.warning(f"八字业务异常 [{request.url.path}]: {e.error_type} {e.message}")
            return JSONResponse(status_code=e.code, content=bazi_error_content(e))
        except BrokenPipeError:
            # 客户端主动断开
            return JSONResponse(
                status_code=200,
                content={
                    "success": False,
                    "error": "客户端连接已断开",
                    "error_type": "client_disconnected"
                }
            )
        except ValueError as e:
            logger.warning(f"参数验证错误: {str(e)}")
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "error": str(e),
                    "error_type": "validation_error"
                }
            )
        except Exception as e:
            logger.error(f"未处理的异常: {str(e)}\n{traceback.format_exc()}")

            if PRODUCTION_MODE:
                error_detail = "服务器内部错误，请稍后重试"
            else:
                error_detail = f"错误: {str(e)}"

            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": error_detail,
                    "error_type": "internal_error"
                }
            )
