"""上传辅助客户端

浏览器端上传的Python对应实现：把文件列表组装为multipart请求，
POST 到 {site_url}{prefix}/{route}/upload，非2xx响应转换为异常
"""

from typing import Any, Optional, Sequence, Union

import httpx

# (文件名, 内容, MIME类型)
UploadItem = tuple[str, Union[bytes, Any], str]


class UploadError(Exception):
    """上传请求返回非2xx状态"""

    def __init__(self, status_code: int, reason: str, text: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.text = text
        message = f"File upload failed ({status_code} {reason})"
        if text:
            message = f"{message}: {text}"
        super().__init__(message)


class _BaseUploadClient:
    def __init__(
        self,
        site_url: str,
        route: str,
        auth_token: Optional[str] = None,
        path_prefix: str = "/storage",
        timeout: float = 60.0,
    ) -> None:
        self.endpoint = f"{site_url.rstrip('/')}{path_prefix.rstrip('/')}/{route}/upload"
        self.auth_token = auth_token
        self.timeout = timeout

    def _build_request(self, files: Sequence[UploadItem]) -> dict[str, Any]:
        if not files:
            raise ValueError("No files provided for upload")

        headers = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return {
            "files": [("files", item) for item in files],
            "headers": headers,
        }

    def _handle_response(self, response: httpx.Response) -> Any:
        if response.is_success:
            return response.json()
        raise UploadError(response.status_code, response.reason_phrase, response.text)


class UploadClient(_BaseUploadClient):
    """同步上传客户端"""

    def __init__(self, *args, transport: Optional[httpx.BaseTransport] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.client = httpx.Client(timeout=self.timeout, transport=transport)

    def upload(self, files: Sequence[UploadItem], data: Optional[dict[str, Any]] = None) -> Any:
        """上传文件，data 为额外的文本表单字段"""
        request = self._build_request(files)
        response = self.client.post(self.endpoint, data=data, **request)
        return self._handle_response(response)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "UploadClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncUploadClient(_BaseUploadClient):
    """异步上传客户端"""

    def __init__(self, *args, transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def upload(self, files: Sequence[UploadItem], data: Optional[dict[str, Any]] = None) -> Any:
        request = self._build_request(files)
        response = await self.client.post(self.endpoint, data=data, **request)
        return self._handle_response(response)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AsyncUploadClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
