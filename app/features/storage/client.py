"""存储客户端

宿主应用通过该客户端注册上传路由，并对已上传文件执行查询和删除
"""

import asyncio
from typing import Mapping, Optional, Sequence, Union

from fastapi import APIRouter, FastAPI
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import IdentityProvider

from .models import FileMetadataRecord
from .object_store import ObjectStore
from .registry import RouteRegistry
from .router import build_upload_router
from .routes import UploadRoute
from .service import FileMetadataService, metadata_service as default_metadata_service


class StorageClient:
    """上传路由客户端

    示例::

        storage = StorageClient(routes, object_store=create_object_store())
        storage.register_routes(app)
    """

    def __init__(
        self,
        routes: Mapping[str, UploadRoute],
        object_store: ObjectStore,
        *,
        identity_provider: Optional[IdentityProvider] = None,
        path_prefix: str = "/storage",
        site_url: Optional[str] = None,
        metadata_service: Optional[FileMetadataService] = None,
    ) -> None:
        self.registry = routes if isinstance(routes, RouteRegistry) else RouteRegistry(routes)
        self.object_store = object_store
        self.identity_provider = identity_provider
        self.path_prefix = path_prefix
        self.site_url = site_url
        self.metadata_service = metadata_service or default_metadata_service

    def register_routes(self, app: Union[FastAPI, APIRouter]) -> None:
        """在应用或路由器上注册所有上传端点"""
        app.include_router(build_upload_router(self))
        logger.info(f"上传端点已挂载到 {self.path_prefix}，共{len(self.registry)}个路由")

    async def get_file(self, db: AsyncSession, file_id: str) -> Optional[FileMetadataRecord]:
        """获取单个文件记录，不存在返回None"""
        [record] = await self.list_files(db, [file_id])
        return record

    async def list_files(
        self,
        db: AsyncSession,
        file_ids: Sequence[str]
    ) -> list[Optional[FileMetadataRecord]]:
        """按ID批量获取文件记录，顺序与输入一致"""
        records = await self.metadata_service.get_by_ids(db, file_ids)
        return [
            FileMetadataRecord.from_record(record) if record is not None else None
            for record in records
        ]

    async def delete_file(self, db: AsyncSession, file_id: str) -> None:
        """删除单个文件及其存储对象，ID不存在时什么也不做"""
        record = await self.get_file(db, file_id)
        if record is None:
            return

        await self.object_store.delete(record.storage_id)
        await self.metadata_service.delete_by_ids(db, [file_id])

    async def delete_files(self, db: AsyncSession, file_ids: Sequence[str]) -> None:
        """批量删除文件及其存储对象

        先并发删除已存在记录对应的对象，再删除元数据
        """
        if not file_ids:
            return

        records = await self.metadata_service.get_by_ids(db, file_ids)
        await asyncio.gather(*(
            self.object_store.delete(record.storage_id)
            for record in records
            if record is not None
        ))
        await self.metadata_service.delete_by_ids(db, file_ids)
