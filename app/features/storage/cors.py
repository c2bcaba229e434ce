"""上传路由的CORS处理

上传接口需要按请求来源回显Origin，并允许携带凭证，
因此不使用全局的CORSMiddleware，而是在每个响应上单独附加
"""

from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

ALLOWED_METHODS = "POST"
ALLOWED_HEADERS = "Content-Type, Digest, Authorization"
MAX_AGE = "86400"


def get_allowed_origin(request: Request, fallback: Optional[str] = None) -> str:
    """请求的Origin，其次为配置的站点地址，最后为 "*" """
    return request.headers.get("Origin") or fallback or "*"


def build_cors_headers(request: Request, fallback: Optional[str] = None) -> dict[str, str]:
    """计算响应需要附加的CORS头"""
    origin = get_allowed_origin(request, fallback)
    headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
        "Vary": "origin",
    }
    if origin != "*":
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def is_preflight_request(request: Request) -> bool:
    """同时携带三个CORS探测头才视为预检请求"""
    headers = request.headers
    return (
        headers.get("Origin") is not None
        and headers.get("Access-Control-Request-Method") is not None
        and headers.get("Access-Control-Request-Headers") is not None
    )


def preflight_response(request: Request, fallback: Optional[str] = None) -> Response:
    """处理OPTIONS请求

    真正的预检请求返回CORS头和空响应体，否则返回不带CORS头的空响应
    """
    if is_preflight_request(request):
        return Response(status_code=200, headers=build_cors_headers(request, fallback))
    return Response(status_code=200)
