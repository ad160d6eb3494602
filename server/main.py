#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FastAPI 应用主入口
"""

import json
import logging
import os
import platform
import time
from contextlib import asynccontextmanager

import psutil
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# 优先加载 .env 文件（必须在读取配置之前）
env_path = os.path.join(project_root, '.env')
if os.path.exists(env_path):
    load_dotenv(env_path, override=True)

from server.config import get_config
from server.config.redis_config import close_redis, get_redis_client

_config = get_config()

logging.basicConfig(
    level=getattr(logging, _config.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from server.api.v1.bazi import router as bazi_router
from server.services.bazi_compute_dispatcher import BaziComputeDispatcher
from server.services.bazi_data_cache import BaziDataCache
from server.services.bazi_schema_normalizer import BaziSchemaNormalizer
from server.services.bazi_service import BaziService
from server.utils.async_executor import ThreadWorkerChannel, shutdown_executor
from server.utils.exception_handler import ExceptionHandlerMiddleware
from server.workers.bazi_worker import handle_message


# 自定义UTF-8 JSONResponse类，确保中文正确编码
class UTF8JSONResponse(Response):
    media_type = "application/json; charset=utf-8"

    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")


def create_bazi_service(config=None) -> BaziService:
    """按配置组装八字服务（缓存 + 调度器 + 归一化器）"""
    config = config or get_config()
    engine = config.engine

    redis_client = get_redis_client(config.redis) if engine.cache_use_redis else None
    cache = BaziDataCache.from_config(engine, redis_client=redis_client)

    worker_factory = (lambda: ThreadWorkerChannel(handle_message)) if engine.worker_enabled else None
    dispatcher = BaziComputeDispatcher(worker_factory, timeout=engine.worker_timeout)

    logger.info(f"✓ 八字服务已创建 (worker={engine.worker_enabled}, redis={redis_client is not None}, "
                f"timeout={engine.worker_timeout}s, mode={engine.default_mode})")
    return BaziService(cache, dispatcher, BaziSchemaNormalizer, default_mode=engine.default_mode)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    service = create_bazi_service(_config)
    app.state.bazi_service = service
    yield
    service.dispatcher.close()
    shutdown_executor()
    close_redis()
    logger.info("✓ 八字服务已关闭")


app = FastAPI(
    title="BaziEngineAPI",
    description="八字排盘计算API服务",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=UTF8JSONResponse
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """记录请求日志，包括处理时间"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.3f}s"
    )
    response.headers["X-Process-Time"] = str(process_time)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 统一异常处理中间件（最后添加，最先执行）
app.add_middleware(ExceptionHandlerMiddleware)

app.include_router(bazi_router, prefix="/api/v1", tags=["八字计算"])


@app.get("/health")
async def health_check(request: Request):
    """
    健康检查接口
    检查系统资源和缓存状态
    """
    try:
        cpu_percent = psutil.cpu_percent(interval=0.1)
        memory = psutil.virtual_memory()

        health_data = {
            "status": "healthy",
            "timestamp": time.time(),
            "system": {
                "platform": platform.system(),
                "python_version": platform.python_version(),
                "cpu_percent": cpu_percent,
                "memory": {
                    "total": memory.total,
                    "available": memory.available,
                    "percent": memory.percent,
                },
            },
        }

        service = getattr(request.app.state, "bazi_service", None)
        if service is not None:
            health_data["cache"] = service.cache.stats()
            health_data["worker"] = {
                "available": service.dispatcher.worker_available,
                "pending": len(service.dispatcher.pending_task_ids()),
            }

        if cpu_percent > 90 or memory.percent > 90:
            health_data["status"] = "warning"
            health_data["message"] = "系统资源使用率较高"

        return health_data

    except Exception as e:
        logger.error(f"健康检查失败: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e),
                "timestamp": time.time()
            }
        )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server.main:app",
        host="0.0.0.0",
        port=8001,
        reload=_config.debug,
        workers=1
    )
