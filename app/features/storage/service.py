"""文件元数据服务

对 files 表的读写操作，按不透明的文件ID和路由名（bucket）组织
"""

from typing import Any, Optional, Sequence

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from .models import FileRecord, StoredFile


class FileMetadataService:
    """文件元数据服务

    数据库不可用时异常直接向上传播，不做重试
    """

    async def get_by_ids(
        self,
        db: AsyncSession,
        file_ids: Sequence[str]
    ) -> list[Optional[FileRecord]]:
        """按ID批量获取文件记录

        结果与输入顺序一一对应，不存在的ID对应None

        Args:
            db: 数据库会话
            file_ids: 文件记录ID列表

        Returns:
            list[Optional[FileRecord]]: 文件记录列表
        """
        if not file_ids:
            return []

        statement = select(FileRecord).where(FileRecord.id.in_(set(file_ids)))
        result = await db.execute(statement)
        found = {record.id: record for record in result.scalars().all()}

        logger.debug(f"查询文件记录: 请求{len(file_ids)}个，命中{len(found)}个")
        return [found.get(file_id) for file_id in file_ids]

    async def create_many(
        self,
        db: AsyncSession,
        stored_files: Sequence[StoredFile],
        metadata: dict[str, Any],
        bucket: str
    ) -> list[FileRecord]:
        """为每个已存储文件创建一条元数据记录

        所有记录共享同一个bucket和metadata，不做去重和存在性检查

        Args:
            db: 数据库会话
            stored_files: 已写入对象存储的文件
            metadata: checkUpload 返回的元数据
            bucket: 路由名

        Returns:
            list[FileRecord]: 创建的文件记录
        """
        records = [
            FileRecord(
                bucket=bucket,
                storage_id=stored_file.id,
                public_url=stored_file.url,
                file_metadata=dict(metadata),
            )
            for stored_file in stored_files
        ]

        db.add_all(records)
        await db.commit()

        logger.info(f"文件记录已创建: bucket={bucket}, 数量={len(records)}")
        return records

    async def delete_by_ids(self, db: AsyncSession, file_ids: Sequence[str]) -> None:
        """按ID删除文件记录，不存在的ID直接忽略"""
        if not file_ids:
            return

        await db.execute(delete(FileRecord).where(FileRecord.id.in_(set(file_ids))))
        await db.commit()

        logger.info(f"文件记录已删除: {len(file_ids)}个")

    async def list_by_bucket(self, db: AsyncSession, bucket: str) -> list[FileRecord]:
        """列出某个路由下的所有文件记录，按创建时间排序"""
        statement = (
            select(FileRecord)
            .where(FileRecord.bucket == bucket)
            .order_by(FileRecord.created_at)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())


# 全局元数据服务实例
metadata_service = FileMetadataService()
