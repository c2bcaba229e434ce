"""FastAPI应用主入口

配置应用实例、路由和生命周期事件
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text

from app.core.config import settings
from app.core.database import db_manager
from app.shared.schemas import APIResponse, HealthCheckResponse
from app.storage_routes import storage


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理

    启动时运行数据库迁移，关闭时释放数据库连接
    """
    logger.info("正在启动FastAPI应用...")

    try:
        if db_manager.engine:
            try:
                await db_manager.run_migrations()
            except Exception as migration_error:
                logger.warning(f"数据库迁移失败，尝试使用备用方法: {migration_error}")
                # 仅开发环境允许直接建表
                if settings.debug:
                    await db_manager.create_tables_fallback()
                else:
                    logger.error("生产环境下数据库迁移失败，应用启动终止")
                    raise
        else:
            logger.warning("数据库未配置，上传接口将无法写入文件元数据")

        logger.info("应用启动完成")

    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    yield

    logger.info("正在关闭FastAPI应用...")
    try:
        await db_manager.close()
        logger.info("应用关闭完成")
    except Exception as e:
        logger.error(f"应用关闭时出错: {e}")


# 创建FastAPI应用实例
app = FastAPI(
    title=settings.app_name,
    description="基于FastAPI的文件上传服务，按路由校验并写入对象存储",
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan
)


# 上传端点自行附加CORS头，这里不挂载全局CORSMiddleware，避免拦截预检请求
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP异常处理器

    将HTTPException转换为统一的API响应格式
    """
    logger.warning(f"HTTP异常: {exc.status_code} - {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=APIResponse(
            success=False,
            data=None,
            message=str(exc.detail),
            code=exc.status_code,
            error_type=getattr(exc, "error_type", "HTTPException")
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """通用异常处理器

    处理未捕获的异常，避免暴露内部错误信息
    """
    logger.error(f"未处理的异常: {type(exc).__name__}: {str(exc)}")

    return JSONResponse(
        status_code=500,
        content=APIResponse(
            success=False,
            data=None,
            message="Internal server error" if not settings.debug else str(exc),
            code=500,
            error_type=type(exc).__name__
        ).model_dump()
    )


@app.get(
    "/health",
    response_model=APIResponse[HealthCheckResponse],
    summary="健康检查",
    description="检查数据库和存储服务的状态"
)
async def health_check() -> APIResponse[HealthCheckResponse]:
    """健康检查端点

    Returns:
        APIResponse[HealthCheckResponse]: 健康检查结果
    """
    database_healthy = False
    try:
        if db_manager.async_session:
            async with db_manager.async_session() as session:
                await session.execute(text("SELECT 1"))
            database_healthy = True
        else:
            logger.info("数据库未配置，跳过健康检查")
    except Exception as e:
        logger.error(f"数据库健康检查失败: {e}")

    # 仅检查R2配置是否完整
    storage_healthy = settings.r2_config is not None

    overall_healthy = database_healthy and storage_healthy

    health_data = HealthCheckResponse(
        status="healthy" if overall_healthy else "unhealthy",
        timestamp=datetime.utcnow().isoformat(),
        version=settings.app_version,
        database=database_healthy,
        storage=storage_healthy,
        routes=list(storage.registry),
    )

    return APIResponse(
        success=overall_healthy,
        data=health_data,
        message="健康检查完成",
        code=200 if overall_healthy else 503
    )


@app.get(
    "/",
    response_model=APIResponse[dict],
    summary="API信息",
    description="获取API基本信息"
)
async def root() -> APIResponse[dict]:
    """根路径端点"""
    return APIResponse(
        success=True,
        data={
            "name": settings.app_name,
            "version": settings.app_version,
            "upload_prefix": storage.path_prefix,
            "docs_url": "/docs",
            "health_url": "/health"
        },
        message="欢迎使用文件上传API",
        code=200
    )


# 注册上传路由
storage.register_routes(app)


if __name__ == "__main__":
    import uvicorn

    logger.add(
        "logs/app_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        level="INFO",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
        serialize=True
    )

    logger.info(f"启动开发服务器: {settings.app_name} v{settings.app_version}")

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug"
    )
