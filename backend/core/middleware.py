"""
中间件模块
提供请求日志、安全响应头等中间件
"""

import time
import uuid
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    获取客户端IP

    只有直连地址属于 trusted_proxies 时才读取 X-Forwarded-For / X-Real-IP，
    否则这些头可以被客户端随意伪造
    """
    peer = request.client.host if request.client else "unknown"

    app = request.scope.get("app")
    settings = getattr(app.state, "settings", None) if app is not None else None
    trusted = set(settings.trusted_proxies) if settings else set()
    if peer not in trusted:
        return peer

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        hops = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        # 从右往左跳过可信代理，第一个不可信的地址就是客户端
        for ip in reversed(hops):
            if ip not in trusted:
                return ip
        if hops:
            return hops[0]

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return peer


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    只记录慢请求和错误请求，并在响应头中附带请求ID和耗时
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths=None,  # 支持 list 或 set
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        default_skip = [
            "/api/ping",
            "/api/docs",
            "/api/redoc",
            "/api/openapi.json",
            "/favicon.ico"
        ]
        self.skip_paths = list(skip_paths) if skip_paths else default_skip
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        """检查是否跳过日志记录"""
        return any(path.startswith(p) for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.error(f"[请求异常] {request_id} {method} {path} | {duration_ms}ms | {e}")
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(
                f"[慢请求] {request_id} {method} {path} | {response.status_code} | {duration_ms}ms"
            )
        elif response.status_code >= 400:
            logger.warning(
                f"[请求错误] {request_id} {method} {path} | {response.status_code} | "
                f"{duration_ms}ms | {get_client_ip(request)}"
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    安全响应头中间件
    添加常见的安全响应头，API 响应禁止缓存
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # 随机视频每次请求结果都不同，不能被浏览器或代理缓存
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"

        return response
