"""数据库连接模块

提供SQLAlchemy异步数据库连接和会话管理
"""

import asyncio
from typing import AsyncGenerator, Optional

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from .config import settings


class DatabaseManager:
    """数据库管理器

    管理异步数据库引擎和会话工厂
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """初始化数据库管理器

        创建异步引擎和会话工厂；未配置数据库URL时跳过初始化
        """
        self.engine: Optional[AsyncEngine] = None
        self.async_session: Optional[async_sessionmaker[AsyncSession]] = None

        url = database_url or settings.async_database_url
        if not url:
            logger.warning("数据库URL未配置，跳过数据库初始化")
            return

        engine_options = {"echo": settings.debug, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            engine_options.update(
                pool_size=10,  # 连接池大小
                max_overflow=20,  # 最大溢出连接数
                pool_recycle=3600,  # 连接回收时间（秒）
            )

        self.engine = create_async_engine(url, **engine_options)

        self.async_session = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # 提交后不过期对象
            autoflush=True,
        )

        logger.info(f"数据库引擎已初始化: {url.split('@')[1] if '@' in url else url.split('://')[0]}")

    async def run_migrations(self) -> None:
        """运行数据库迁移

        使用 Alembic 将数据库迁移到最新版本
        """
        try:
            # Alembic 是同步的，放到执行器中运行
            await asyncio.get_running_loop().run_in_executor(
                None, self._run_alembic_upgrade
            )
            logger.info("数据库迁移完成")
        except Exception as e:
            logger.error(f"数据库迁移失败: {e}")
            raise

    def _run_alembic_upgrade(self) -> None:
        """在执行器中运行 Alembic 升级"""
        try:
            alembic_cfg = Config("alembic.ini")
            command.upgrade(alembic_cfg, "head")
        except Exception as e:
            logger.error(f"Alembic 升级失败: {e}")
            raise

    async def create_tables_fallback(self) -> None:
        """备用的表创建方法

        仅在 Alembic 迁移失败时使用，直接创建所有表。
        注意：这种方法不支持数据迁移。
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.warning("使用备用方法创建数据库表（不推荐用于生产环境）")
        except Exception as e:
            logger.error(f"备用表创建方法失败: {e}")
            raise

    async def close(self) -> None:
        """关闭数据库连接

        在应用关闭时调用，清理资源
        """
        if self.engine:
            await self.engine.dispose()
            logger.info("数据库连接已关闭")

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """获取数据库会话

        自动管理会话生命周期，出错时回滚

        Yields:
            AsyncSession: 数据库会话
        """
        if not self.async_session:
            raise RuntimeError("数据库未配置，无法创建会话")

        async with self.async_session() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error(f"数据库会话错误: {e}")
                raise


# 全局数据库管理器实例
db_manager = DatabaseManager()


# FastAPI依赖注入函数
async def get_db() -> AsyncGenerator[Optional[AsyncSession], None]:
    """获取数据库会话的依赖注入函数

    在FastAPI路由中使用: db: Optional[AsyncSession] = Depends(get_db)
    数据库未配置时返回None，由端点自行转换为错误响应

    Yields:
        AsyncSession: 数据库会话
    """
    if db_manager.async_session is None:
        yield None
        return

    async for session in db_manager.get_session():
        yield session
