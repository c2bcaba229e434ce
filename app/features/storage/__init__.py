"""文件上传功能模块

按路由定义校验multipart上传，写入对象存储并记录文件元数据
"""

from .client import StorageClient
from .models import FileMetadataRecord, FileRecord, StoredFile
from .object_store import MemoryObjectStore, ObjectStore, R2ObjectStore, create_object_store
from .registry import RouteRegistry
from .routes import (
    AuthenticatedUploadRoute,
    HookContext,
    PublicUploadRoute,
    UploadRoute,
    route,
)

__all__ = [
    "StorageClient",
    "FileMetadataRecord",
    "FileRecord",
    "StoredFile",
    "MemoryObjectStore",
    "ObjectStore",
    "R2ObjectStore",
    "create_object_store",
    "RouteRegistry",
    "AuthenticatedUploadRoute",
    "HookContext",
    "PublicUploadRoute",
    "UploadRoute",
    "route",
]
