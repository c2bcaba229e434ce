"""路由注册表与钩子调度

注册表在启动时一次性构建，之后只读；HTTP处理和钩子调度都通过它查找路由
"""

import inspect
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from loguru import logger

from app.core.auth import Identity
from app.shared.exceptions import UnauthorizedError, UnknownRouteError

from .models import StoredFile
from .routes import HookContext, Metadata, UploadRoute


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class RouteRegistry(Mapping[str, UploadRoute]):
    """路由名到上传路由的只读映射"""

    def __init__(self, routes: Mapping[str, UploadRoute]) -> None:
        self._routes = MappingProxyType(dict(routes))
        logger.info(f"上传路由已注册: {', '.join(self._routes) or '无'}")

    def __getitem__(self, name: str) -> UploadRoute:
        return self._routes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def get_route(self, name: str) -> UploadRoute:
        """按名称查找路由

        Raises:
            UnknownRouteError: 路由未注册
        """
        upload_route = self._routes.get(name)
        if upload_route is None:
            raise UnknownRouteError(name)
        return upload_route

    def _resolve_for_hook(self, name: str, identity: Optional[Identity]) -> UploadRoute:
        upload_route = self.get_route(name)
        if upload_route.require_auth and identity is None:
            raise UnauthorizedError("Identity required")
        return upload_route

    async def invoke_check_upload(
        self,
        name: str,
        ctx: HookContext,
        identity: Optional[Identity] = None,
    ) -> Metadata:
        """调用路由的 check_upload 钩子

        钩子未配置或返回None时得到空元数据

        Raises:
            UnknownRouteError: 路由未注册
            UnauthorizedError: 路由要求身份认证但未提供identity
        """
        upload_route = self._resolve_for_hook(name, identity)
        if upload_route.check_upload is None:
            return {}

        if upload_route.require_auth:
            result = upload_route.check_upload(ctx, identity)
        else:
            result = upload_route.check_upload(ctx)

        metadata = await _resolve(result)
        return dict(metadata) if metadata is not None else {}

    async def invoke_on_uploaded(
        self,
        name: str,
        ctx: HookContext,
        stored_files: list[StoredFile],
        metadata: Metadata,
        identity: Optional[Identity] = None,
    ) -> Any:
        """调用路由的 on_uploaded 钩子，钩子未配置时返回None

        Raises:
            UnknownRouteError: 路由未注册
            UnauthorizedError: 路由要求身份认证但未提供identity
        """
        upload_route = self._resolve_for_hook(name, identity)
        if upload_route.on_uploaded is None:
            return None

        if upload_route.require_auth:
            result = upload_route.on_uploaded(ctx, identity, stored_files, metadata)
        else:
            result = upload_route.on_uploaded(ctx, stored_files, metadata)

        return await _resolve(result)
