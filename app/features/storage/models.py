"""存储功能数据模型

定义文件元数据表以及上传流程中传递的数据模型
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _new_file_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileRecord(SQLModel, table=True):
    """文件元数据表

    每个上传成功的对象对应一行；行创建后不再原地更新。
    metadata 列保存 checkUpload 返回的不透明JSON值，核心逻辑不解析其结构。
    """

    __tablename__ = "files"

    id: str = Field(
        default_factory=_new_file_id,
        primary_key=True,
        max_length=32,
        description="文件记录ID"
    )
    bucket: str = Field(max_length=255, index=True, description="上传时的路由名")
    storage_id: str = Field(max_length=500, description="对象存储句柄")
    public_url: str = Field(description="上传时解析得到的访问URL")
    # SQLModel 保留了 metadata 属性名，列名仍为 metadata
    file_metadata: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("metadata", JSON, nullable=False),
        description="checkUpload 返回的元数据"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="创建时间(UTC)"
    )


class StoredFile(BaseModel):
    """已写入对象存储的文件

    不单独持久化，转交给元数据表和 onUploaded 钩子
    """

    id: str
    url: str


class FileMetadataRecord(BaseModel):
    """文件元数据响应模型，JSON字段使用camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    bucket: str
    storage_id: str
    public_url: str
    metadata: dict[str, Any]
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileMetadataRecord":
        return cls(
            id=record.id,
            bucket=record.bucket,
            storage_id=record.storage_id,
            public_url=record.public_url,
            metadata=record.file_metadata,
            created_at=record.created_at,
        )
