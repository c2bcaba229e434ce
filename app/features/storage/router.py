"""上传路由HTTP端点

为每个已注册的上传路由 R 生成两个端点：
POST {prefix}/{R}/upload 与 OPTIONS {prefix}/{R}/upload
"""

from typing import TYPE_CHECKING, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db

from .cors import preflight_response
from .pipeline import UploadPipeline

if TYPE_CHECKING:
    from .client import StorageClient


def upload_path(path_prefix: str, route_name: str) -> str:
    return f"{path_prefix.rstrip('/')}/{route_name}/upload"


def _add_upload_endpoints(router: APIRouter, path: str, pipeline: UploadPipeline) -> None:
    async def upload(
        request: Request,
        db: Optional[AsyncSession] = Depends(get_db)
    ) -> Response:
        return await pipeline.handle(request, db)

    async def preflight(request: Request) -> Response:
        return preflight_response(request, pipeline.site_url)

    router.add_api_route(
        path,
        upload,
        methods=["POST"],
        name=f"upload_{pipeline.route_name}",
        summary=f"上传文件到 {pipeline.route_name}",
        description="multipart表单，文件放在 files 字段，其余文本字段会传给 checkUpload",
    )
    router.add_api_route(
        path,
        preflight,
        methods=["OPTIONS"],
        name=f"upload_{pipeline.route_name}_preflight",
        include_in_schema=False,
    )


def build_upload_router(client: "StorageClient") -> APIRouter:
    """按存储客户端中的路由表构建APIRouter"""
    router = APIRouter(tags=["上传"])

    for route_name in client.registry:
        pipeline = UploadPipeline(
            route_name=route_name,
            registry=client.registry,
            object_store=client.object_store,
            metadata_service=client.metadata_service,
            identity_provider=client.identity_provider,
            site_url=client.site_url,
        )
        _add_upload_endpoints(router, upload_path(client.path_prefix, route_name), pipeline)

    return router
