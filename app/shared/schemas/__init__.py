"""共享数据模式

定义通用的API响应格式
"""

from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


class APIResponse(BaseModel, Generic[T]):
    """统一API响应格式

    用于健康检查等非上传接口；上传接口按约定直接返回 {"error": ...} 或钩子结果
    """
    success: bool = Field(description="操作是否成功")
    data: Optional[T] = Field(default=None, description="响应数据")
    message: str = Field(description="响应消息")
    code: int = Field(description="HTTP状态码")
    error_type: Optional[str] = Field(default=None, description="错误类型")


class ErrorBody(BaseModel):
    """上传接口的错误响应体"""
    error: str = Field(description="可读的错误信息")


class HealthCheckResponse(BaseModel):
    """健康检查响应"""
    status: str = Field(description="服务状态")
    timestamp: str = Field(description="检查时间")
    version: str = Field(description="应用版本")
    database: bool = Field(description="数据库连接状态")
    storage: bool = Field(description="存储服务状态")
    routes: list[str] = Field(default_factory=list, description="已注册的上传路由")
