"""上传处理流程

单个上传请求的完整处理：认证 -> 解析 -> 校验 -> 规范化 -> checkUpload
-> 写入对象存储 -> 写入元数据 -> onUploaded -> 响应。
请求之间不共享可变状态。
"""

import asyncio
from typing import Any, Optional, Sequence

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.requests import Request

from app.core.auth import Identity, IdentityProvider
from app.shared.exceptions import (
    DatabaseUnavailableError,
    StorageFailureError,
    UnauthorizedError,
)
from app.shared.schemas import ErrorBody

from .cors import build_cors_headers
from .forms import extract_upload_files, normalize_form_data
from .models import StoredFile
from .object_store import ObjectStore
from .registry import RouteRegistry
from .routes import HookContext
from .service import FileMetadataService
from .validation import validate_files


def error_status(exc: Exception) -> int:
    """异常对应的HTTP状态码

    只透传400-403范围内声明的状态码，其余一律500
    """
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code <= 403:
        return status_code
    return 500


def error_message(exc: Exception) -> str:
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    return str(exc) or "Upload failed"


class UploadPipeline:
    """单个上传路由的请求处理器"""

    def __init__(
        self,
        route_name: str,
        registry: RouteRegistry,
        object_store: ObjectStore,
        metadata_service: FileMetadataService,
        identity_provider: Optional[IdentityProvider] = None,
        site_url: Optional[str] = None,
    ) -> None:
        self.route_name = route_name
        self.registry = registry
        self.object_store = object_store
        self.metadata_service = metadata_service
        self.identity_provider = identity_provider
        self.site_url = site_url

    async def handle(self, request: Request, db: Optional[AsyncSession]) -> JSONResponse:
        """处理上传请求，任何异常都在这里转换为带CORS头的错误响应"""
        cors_headers = build_cors_headers(request, self.site_url)

        try:
            body = await self._process(request, db)
        except Exception as exc:
            status_code = error_status(exc)
            message = error_message(exc)
            if status_code == 500:
                logger.exception(f"上传失败 [{self.route_name}]: {message}")
            else:
                logger.warning(f"上传被拒绝 [{self.route_name}] {status_code}: {message}")

            await self._rollback(db)
            return JSONResponse(
                status_code=status_code,
                content=ErrorBody(error=message).model_dump(),
                headers=cors_headers,
            )

        return JSONResponse(status_code=200, content=body, headers=cors_headers)

    async def _rollback(self, db: Optional[AsyncSession]) -> None:
        if db is None:
            return
        try:
            await db.rollback()
        except Exception as e:
            # 错误响应照常返回
            logger.error(f"会话回滚失败 [{self.route_name}]: {e}")

    async def _authenticate(self, request: Request) -> Optional[Identity]:
        upload_route = self.registry.get_route(self.route_name)
        if not upload_route.require_auth:
            return None

        identity = None
        if self.identity_provider is not None:
            identity = await self.identity_provider.get_user_identity(request)
        if identity is None:
            raise UnauthorizedError()
        return identity

    async def _process(self, request: Request, db: Optional[AsyncSession]) -> Any:
        identity = await self._authenticate(request)
        upload_route = self.registry.get_route(self.route_name)
        if db is None:
            raise DatabaseUnavailableError()

        form = await request.form()
        files = extract_upload_files(form)
        validate_files(upload_route, files)

        ctx = HookContext(
            route=self.route_name,
            request=normalize_form_data(form),
            session=db,
        )
        logger.info(f"开始处理上传 [{self.route_name}]: {len(files)}个文件")

        metadata: dict[str, Any] = {}
        if upload_route.check_upload is not None:
            metadata = await self.registry.invoke_check_upload(
                self.route_name, ctx, identity=identity
            )

        stored_files = await self._store_files(files)

        await self.metadata_service.create_many(
            db, stored_files, metadata, bucket=self.route_name
        )

        result = None
        if upload_route.on_uploaded is not None:
            result = await self.registry.invoke_on_uploaded(
                self.route_name, ctx, list(stored_files), metadata, identity=identity
            )
            await db.commit()

        logger.info(f"上传完成 [{self.route_name}]: {len(stored_files)}个文件")
        if result is None:
            return {"success": True, "filesCount": len(stored_files)}
        return jsonable_encoder(result)

    async def _store_files(self, files: Sequence[UploadFile]) -> list[StoredFile]:
        """并发写入所有文件

        任一文件失败时取消其余写入并等待它们结束，再抛出第一个异常
        """
        tasks = [asyncio.ensure_future(self._store_file(file)) for file in files]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _store_file(self, file: UploadFile) -> StoredFile:
        data = await file.read()
        storage_id = await self.object_store.store(data, file.content_type)
        url = await self.object_store.get_url(storage_id)
        if not url:
            raise StorageFailureError(
                f"Failed to get URL for uploaded file: {file.filename}"
            )
        return StoredFile(id=storage_id, url=url)
