"""核心配置模块

处理环境变量读取、数据库URL的异步转换以及上传路由相关配置
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置类

    自动从环境变量读取配置，并将同步数据库URL转换为异步URL
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # 数据库配置
    database_url: Optional[str] = Field(
        default=None,
        description="数据库连接URL（可为同步URL，自动转换为异步驱动）"
    )

    # Cloudflare R2配置
    service_name: str = Field(default="s3", description="S3兼容服务名称")
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Cloudflare R2端点URL"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="R2访问密钥ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="R2秘密访问密钥"
    )
    region_name: str = Field(default="auto", description="R2区域名称")
    r2_bucket_name: str = Field(default="upload-routes", description="R2存储桶名称")
    r2_public_url: Optional[str] = Field(
        default=None,
        description="R2公开访问域名，未配置时使用预签名URL"
    )
    presigned_url_expires_in: int = Field(
        default=7 * 24 * 3600,
        description="预签名下载URL有效期（秒）"
    )

    # 上传路由配置
    site_url: Optional[str] = Field(
        default=None,
        description="前端站点地址，请求未携带Origin时作为CORS回退值"
    )
    storage_path_prefix: str = Field(default="/storage", description="上传路由路径前缀")
    auth_tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Bearer令牌到用户标识的映射（JSON格式）"
    )

    # 应用配置
    app_name: str = Field(default="Upload Routes", description="应用名称")
    app_version: str = Field(default="0.1.0", description="应用版本")
    debug: bool = Field(default=False, description="调试模式")
    host: str = Field(default="0.0.0.0", description="服务器主机")
    port: int = Field(default=8000, description="服务器端口")
    log_level: str = Field(default="INFO", description="日志级别")
    log_file: str = Field(default="logs/app.log", description="日志文件路径")

    @computed_field
    @property
    def async_database_url(self) -> Optional[str]:
        """将同步PostgreSQL URL转换为异步URL

        平台注入的DATABASE_URL通常使用postgresql://前缀，
        但asyncpg需要postgresql+asyncpg://前缀

        Returns:
            Optional[str]: 异步数据库连接URL，如果未配置则返回None
        """
        if not self.database_url:
            return None

        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif self.database_url.startswith("postgres://"):
            return self.database_url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.database_url

    @computed_field
    @property
    def r2_config(self) -> Optional[dict[str, str]]:
        """Cloudflare R2配置字典

        Returns:
            Optional[dict]: R2客户端配置参数，如果未完整配置则返回None
        """
        if not all([self.endpoint_url, self.aws_access_key_id, self.aws_secret_access_key]):
            return None

        return {
            "service_name": self.service_name,
            "endpoint_url": self.endpoint_url,
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "region_name": self.region_name,
        }


@lru_cache
def get_settings() -> Settings:
    """获取应用配置单例

    使用lru_cache确保配置只被加载一次

    Returns:
        Settings: 应用配置实例
    """
    return Settings()


# 导出配置实例供其他模块使用
settings = get_settings()
