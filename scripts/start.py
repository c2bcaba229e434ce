#!/usr/bin/env python3
"""应用启动脚本

用于本地开发和生产环境启动FastAPI应用
"""

import os
import sys
import argparse
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from app.core.config import settings


def configure_logging() -> None:
    """配置loguru文件日志"""
    log_dir = Path(settings.log_file).parent
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="30 days",
        level=settings.log_level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
    )


def start_dev(host: str, port: int) -> None:
    """启动开发服务器，启用热重载"""
    import uvicorn

    logger.info(f"启动开发服务器，API文档: http://{host}:{port}/docs")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=True,
        log_level=settings.log_level.lower(),
        access_log=True
    )


def start_prod(host: str, port: int) -> None:
    """启动生产服务器

    端口优先读取平台注入的 PORT 环境变量
    """
    import uvicorn

    port = int(os.getenv("PORT", port))
    workers = int(os.getenv("WORKERS", "1"))
    logger.info(f"启动生产服务器: http://{host}:{port} (workers={workers})")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        workers=workers,
        log_level=settings.log_level.lower(),
        access_log=True
    )


def main() -> None:
    """解析命令行参数并启动相应的服务器"""
    parser = argparse.ArgumentParser(description="上传路由服务启动脚本")
    parser.add_argument(
        "--mode",
        choices=["dev", "prod"],
        default="dev",
        help="启动模式: dev(开发) 或 prod(生产)"
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"服务器主机地址 (默认: {settings.host})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"服务器端口 (默认: {settings.port})"
    )

    args = parser.parse_args()
    configure_logging()

    if args.mode == "dev":
        start_dev(args.host, args.port)
    else:
        start_prod(args.host, args.port)


if __name__ == "__main__":
    main()
