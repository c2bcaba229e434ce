"""对象存储能力

上传核心只依赖 store / get_url / delete 三个操作，
提供基于Cloudflare R2（S3兼容）的实现和用于开发测试的内存实现
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from functools import partial
from typing import Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError
from loguru import logger

from app.core.config import Settings, settings as default_settings


class ObjectStore(ABC):
    """对象存储能力接口"""

    @abstractmethod
    async def store(self, data: bytes, content_type: Optional[str] = None) -> str:
        """写入对象并返回存储句柄"""

    @abstractmethod
    async def get_url(self, storage_id: str) -> Optional[str]:
        """解析对象的访问URL，对象不存在时返回None"""

    @abstractmethod
    async def delete(self, storage_id: str) -> None:
        """删除对象，对象不存在时不报错"""


class R2ObjectStore(ObjectStore):
    """Cloudflare R2存储

    boto3 是同步客户端，所有调用都放到默认执行器中运行
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        """初始化R2存储服务

        创建boto3客户端连接到Cloudflare R2
        """
        self.settings = config or default_settings
        try:
            self.s3_client = boto3.client(
                's3',
                endpoint_url=self.settings.endpoint_url,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                region_name=self.settings.region_name,
            )
            self.bucket_name = self.settings.r2_bucket_name

            logger.info(f"R2存储服务已初始化，端点: {self.settings.endpoint_url}")

        except Exception as e:
            logger.error(f"R2存储服务初始化失败: {e}")
            raise

    async def _run(self, func, **kwargs):
        return await asyncio.get_running_loop().run_in_executor(None, partial(func, **kwargs))

    def _generate_file_key(self) -> str:
        """生成唯一的对象键名

        格式: uploads/{year}/{month}/{uuid}
        """
        now = datetime.utcnow()
        return f"uploads/{now.year}/{now.month:02d}/{uuid.uuid4().hex}"

    async def store(self, data: bytes, content_type: Optional[str] = None) -> str:
        file_key = self._generate_file_key()
        params = {"Bucket": self.bucket_name, "Key": file_key, "Body": data}
        if content_type:
            params["ContentType"] = content_type

        try:
            await self._run(self.s3_client.put_object, **params)
        except (ClientError, NoCredentialsError) as e:
            logger.error(f"写入R2失败: {e}")
            raise

        logger.info(f"对象已写入: {file_key} ({len(data)} bytes)")
        return file_key

    async def exists(self, storage_id: str) -> bool:
        try:
            await self._run(self.s3_client.head_object, Bucket=self.bucket_name, Key=storage_id)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error(f"检查对象存在失败: {e}")
            raise

    async def get_url(self, storage_id: str) -> Optional[str]:
        if not await self.exists(storage_id):
            return None

        if self.settings.r2_public_url:
            return f"{self.settings.r2_public_url.rstrip('/')}/{storage_id}"

        try:
            return await self._run(
                self.s3_client.generate_presigned_url,
                ClientMethod='get_object',
                Params={'Bucket': self.bucket_name, 'Key': storage_id},
                ExpiresIn=self.settings.presigned_url_expires_in,
            )
        except ClientError as e:
            logger.error(f"生成预签名下载URL失败: {e}")
            raise

    async def delete(self, storage_id: str) -> None:
        try:
            await self._run(self.s3_client.delete_object, Bucket=self.bucket_name, Key=storage_id)
        except ClientError as e:
            logger.error(f"删除对象失败: {e}")
            raise
        logger.info(f"对象已删除: {storage_id}")


class MemoryObjectStore(ObjectStore):
    """进程内对象存储，仅用于本地开发和测试"""

    def __init__(self, base_url: str = "memory://objects") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, tuple[bytes, Optional[str]]] = {}

    async def store(self, data: bytes, content_type: Optional[str] = None) -> str:
        storage_id = uuid.uuid4().hex
        self.objects[storage_id] = (data, content_type)
        return storage_id

    async def get_url(self, storage_id: str) -> Optional[str]:
        if storage_id not in self.objects:
            return None
        return f"{self.base_url}/{storage_id}"

    async def delete(self, storage_id: str) -> None:
        self.objects.pop(storage_id, None)


def create_object_store(config: Optional[Settings] = None) -> ObjectStore:
    """按配置选择对象存储实现，R2未完整配置时退回内存存储"""
    config = config or default_settings
    if config.r2_config:
        return R2ObjectStore(config)

    logger.warning("R2未配置，使用内存对象存储（数据不会持久化）")
    return MemoryObjectStore()
