"""身份认证模块

身份提供方是外部协作者，这里只定义解析调用方身份的能力接口
以及一个基于Bearer令牌映射的简单实现
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from fastapi import Request
from loguru import logger
from pydantic import BaseModel, Field


class Identity(BaseModel):
    """调用方身份"""

    subject: str = Field(description="用户唯一标识")
    token_identifier: str = Field(description="签发方与用户标识的组合")
    issuer: Optional[str] = Field(default=None, description="签发方")
    name: Optional[str] = None
    email: Optional[str] = None


class IdentityProvider(ABC):
    """身份提供方能力接口"""

    @abstractmethod
    async def get_user_identity(self, request: Request) -> Optional[Identity]:
        """从请求上下文中解析调用方身份，无法解析时返回None"""


class BearerTokenIdentityProvider(IdentityProvider):
    """基于静态令牌映射的身份提供方

    读取 Authorization: Bearer <token>，在令牌映射中查找用户标识
    """

    issuer = "static"

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    async def get_user_identity(self, request: Request) -> Optional[Identity]:
        authorization = request.headers.get("Authorization", "")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None

        subject = self._tokens.get(token.strip())
        if subject is None:
            logger.warning("无效的Bearer令牌")
            return None

        return Identity(
            subject=subject,
            token_identifier=f"{self.issuer}|{subject}",
            issuer=self.issuer,
        )
