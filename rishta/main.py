"""
File: rishta/main.py
Description: FastAPI 应用入口与工厂函数

本模块负责：
1. 创建 FastAPI 应用实例 (设置默认响应类为 ORJSONResponse)
2. 管理应用生命周期 (lifespan): 启动日志、关闭数据库与Redis连接
3. 组装全局组件：中间件、异常处理器、路由
4. 本地图片存储时挂载媒体目录
5. 提供健康检查接口 (/health)

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12
"""

import asyncio
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

# ------------------------------------------------------------------------------
# [Fix for Windows] asyncpg 需要 SelectorEventLoop
# 必须在任何 asyncio 循环启动前执行 (放在顶部)
# ------------------------------------------------------------------------------
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles

from rishta.api_router import api_router
from rishta.core.config import settings
from rishta.core.exceptions import register_exception_handlers
from rishta.core.logging import setup_logging
from rishta.core.middleware import register_middlewares
from rishta.core.redis import close_redis
from rishta.core.response import ResponseModel
from rishta.db.session import close_engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    应用生命周期管理器。
    """
    # 1. 启动时：初始化日志系统
    setup_logging()

    yield

    # 2. 关闭时：释放 Redis 与数据库连接池
    await close_redis()
    await close_engine()


def create_app() -> FastAPI:
    """应用工厂函数"""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # 1. 注册中间件 (CORS, RequestID, Logging)
    register_middlewares(app)

    # 2. 注册异常处理器
    register_exception_handlers(app)

    # 3. 挂载 API 路由
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # 4. 本地存储后端：对外提供已上传图片
    if settings.IMAGE_STORE_BACKEND == "local":
        Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
        app.mount(
            settings.MEDIA_URL,
            StaticFiles(directory=settings.MEDIA_DIR, check_dir=False),
            name="media",
        )

    # 5. 健康检查
    @app.get(
        "/health",
        tags=["health"],
        summary="健康检查",
        response_model=ResponseModel[dict[str, str]],
    )
    async def health_check(request: Request):
        """
        用于 K8s Liveness/Readiness Probe 或负载均衡器检查。
        """
        req_id = getattr(request.state, "request_id", None)
        return ResponseModel.success(data={"status": "ok"}, request_id=req_id)

    # 6. 根路由
    @app.get(
        "/",
        tags=["root"],
        summary="系统入口",
        response_model=ResponseModel[dict[str, str]],
    )
    async def root():
        return ResponseModel.success(
            message=f"Welcome to {settings.PROJECT_NAME}",
            data={
                "status": "running",
                "docs_url": "/docs",
                "health_url": "/health",
            },
        )

    return app


# 暴露给 Uvicorn 运行的应用实例
app = create_app()

if __name__ == "__main__":
    # 本地调试入口
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
