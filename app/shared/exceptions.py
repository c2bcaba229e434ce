"""自定义异常类定义

定义应用中使用的各种自定义异常
提供统一的错误处理机制
"""

from fastapi import HTTPException
from typing import Any, Optional


class BaseAPIException(HTTPException):
    """API异常基类

    所有自定义API异常都应该继承这个类
    上传钩子抛出的该类异常会按其status_code返回给客户端
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_type: str = "APIError",
        headers: Optional[dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_type = error_type

    def __str__(self) -> str:
        return str(self.detail)


class NotFoundError(BaseAPIException):
    """资源不存在异常"""

    def __init__(self, detail: str = "Not found"):
        super().__init__(
            status_code=404,
            detail=detail,
            error_type="NotFoundError"
        )


class UnauthorizedError(BaseAPIException):
    """未授权异常

    当路由要求身份认证但请求未携带有效身份时抛出
    """

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=401,
            detail=detail,
            error_type="UnauthorizedError"
        )


class ForbiddenError(BaseAPIException):
    """禁止访问异常

    当用户权限不足时抛出，通常由checkUpload钩子使用
    """

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(
            status_code=403,
            detail=detail,
            error_type="ForbiddenError"
        )


class UnknownRouteError(BaseAPIException):
    """未注册的上传路由

    路由名不存在于路由注册表时抛出，属于请求级致命错误
    """

    def __init__(self, route: str):
        super().__init__(
            status_code=400,
            detail=f'Unknown upload route: "{route}"',
            error_type="UnknownRouteError"
        )
        self.route = route


class UploadValidationError(BaseAPIException):
    """上传文件校验失败

    文件数量、类型或大小不符合路由策略时抛出
    """

    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            detail=detail,
            error_type="UploadValidationError"
        )


class StorageFailureError(BaseAPIException):
    """对象存储写入或URL解析失败

    不重试，已写入的对象不会回滚
    """

    def __init__(self, detail: str = "Storage failure"):
        super().__init__(
            status_code=500,
            detail=detail,
            error_type="StorageFailureError"
        )


class DatabaseUnavailableError(BaseAPIException):
    """数据库未配置

    未设置 DATABASE_URL 时上传请求无法写入元数据
    """

    def __init__(self, detail: str = "Database is not configured"):
        super().__init__(
            status_code=500,
            detail=detail,
            error_type="DatabaseUnavailableError"
        )
