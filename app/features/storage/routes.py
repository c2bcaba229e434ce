"""上传路由定义

路由按是否要求身份认证分为两种变体，由 require_auth 字段区分：

- PublicUploadRoute:
    check_upload(ctx) -> metadata
    on_uploaded(ctx, stored_files, metadata) -> result
- AuthenticatedUploadRoute:
    check_upload(ctx, identity) -> metadata
    on_uploaded(ctx, identity, stored_files, metadata) -> result

两种变体的钩子都通过 ctx.request 拿到规范化后的表单字段，
通过 ctx.route 拿到路由名。钩子可以是同步或异步函数。

示例::

    routes = {
        "images": route(
            file_types=["image/*"],
            max_file_size=5 * 1024 * 1024,
            max_file_count=10,
            check_upload=lambda ctx: {"album": ctx.request.get("album")},
        ),
    }
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity

from .forms import NormalizedFormData
from .models import StoredFile

Metadata = dict[str, Any]
HookResult = Union[Any, Awaitable[Any]]


@dataclass(frozen=True)
class HookContext:
    """钩子调用上下文

    session 与元数据写入共用同一个请求级会话，钩子可在其中读写业务表
    """

    route: str
    request: NormalizedFormData
    session: Optional[AsyncSession] = None


PublicCheckUpload = Callable[[HookContext], HookResult]
PublicOnUploaded = Callable[[HookContext, list[StoredFile], Metadata], HookResult]
AuthCheckUpload = Callable[[HookContext, Identity], HookResult]
AuthOnUploaded = Callable[[HookContext, Identity, list[StoredFile], Metadata], HookResult]


class BaseUploadRoute(BaseModel):
    """路由的公共校验策略，注册后不可变"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    file_types: list[str] = Field(min_length=1, description="允许的MIME类型，支持 image/* 通配")
    max_file_size: int = Field(gt=0, description="单个文件最大字节数")
    max_file_count: int = Field(default=1, gt=0, description="单次上传最大文件数")


class PublicUploadRoute(BaseUploadRoute):
    """无需身份认证的上传路由"""

    require_auth: Literal[False] = False
    check_upload: Optional[PublicCheckUpload] = None
    on_uploaded: Optional[PublicOnUploaded] = None


class AuthenticatedUploadRoute(BaseUploadRoute):
    """要求身份认证的上传路由，钩子额外接收 identity 参数"""

    require_auth: Literal[True] = True
    check_upload: Optional[AuthCheckUpload] = None
    on_uploaded: Optional[AuthOnUploaded] = None


UploadRoute = Union[PublicUploadRoute, AuthenticatedUploadRoute]


def route(
    *,
    file_types: list[str],
    max_file_size: int,
    max_file_count: int = 1,
    require_auth: bool = False,
    check_upload: Optional[Callable[..., HookResult]] = None,
    on_uploaded: Optional[Callable[..., HookResult]] = None,
) -> UploadRoute:
    """按 require_auth 构造对应的路由变体"""
    route_class = AuthenticatedUploadRoute if require_auth else PublicUploadRoute
    return route_class(
        file_types=file_types,
        max_file_size=max_file_size,
        max_file_count=max_file_count,
        check_upload=check_upload,
        on_uploaded=on_uploaded,
    )
