"""
中间件单元测试
测试安全响应头、缓存控制和请求ID
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from core.config import Settings
from core.middleware import get_client_ip


@pytest.mark.asyncio
class TestMiddleware:
    """中间件测试"""

    async def test_security_headers(self, client: AsyncClient):
        """测试安全响应头是否正确添加"""
        response = await client.get("/api/ping")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert "strict-origin-when-cross-origin" in response.headers.get("Referrer-Policy", "")

    async def test_api_cache_control_headers(self, client: AsyncClient, db_session):
        """随机视频接口禁止缓存"""
        response = await client.get("/api/videos/random")
        assert response.status_code == 200

        cc = response.headers.get("Cache-Control", "")
        assert "no-cache" in cc
        assert "no-store" in cc
        assert response.headers.get("Pragma") == "no-cache"

    async def test_request_id_header(self, client: AsyncClient, db_session):
        """非跳过路径附带请求ID和耗时"""
        response = await client.get("/api/videos/count")

        assert response.headers.get("X-Request-ID")
        assert response.headers.get("X-Response-Time", "").endswith("ms")

    async def test_request_id_propagated(self, client: AsyncClient, db_session):
        """沿用调用方传入的请求ID"""
        response = await client.get("/api/videos/count", headers={"X-Request-ID": "abc12345"})

        assert response.headers.get("X-Request-ID") == "abc12345"

    async def test_ping_skips_request_logging(self, client: AsyncClient):
        response = await client.get("/api/ping")

        assert "X-Request-ID" not in response.headers

    async def test_cors_headers(self, client: AsyncClient):
        response = await client.get("/api/ping", headers={"Origin": "http://player.example.com"})

        assert response.headers.get("access-control-allow-origin") == "*"


def make_request(client_host: str, headers: dict, trusted_proxies=None) -> Request:
    app = SimpleNamespace(state=SimpleNamespace(settings=Settings(trusted_proxies=trusted_proxies or [])))
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/api/admin/login",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (client_host, 50000),
        "app": app,
    })


class TestClientIp:
    """客户端IP解析测试"""

    def test_direct_client_ignores_forwarded_headers(self):
        request = make_request("203.0.113.7", {"X-Forwarded-For": "10.0.0.1", "X-Real-IP": "10.0.0.2"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_trusted_proxy_uses_forwarded_for(self):
        request = make_request("127.0.0.1", {"X-Forwarded-For": "198.51.100.4"}, ["127.0.0.1"])

        assert get_client_ip(request) == "198.51.100.4"

    def test_trusted_proxy_skips_spoofed_prefix(self):
        """客户端自带的 X-Forwarded-For 前缀不被采用"""
        request = make_request(
            "127.0.0.1",
            {"X-Forwarded-For": "1.2.3.4, 198.51.100.4, 10.0.0.5"},
            ["127.0.0.1", "10.0.0.5"]
        )

        assert get_client_ip(request) == "198.51.100.4"

    def test_trusted_proxy_real_ip(self):
        request = make_request("127.0.0.1", {"X-Real-IP": "198.51.100.9"}, ["127.0.0.1"])

        assert get_client_ip(request) == "198.51.100.9"

    def test_trusted_proxy_without_headers(self):
        assert get_client_ip(make_request("127.0.0.1", {}, ["127.0.0.1"])) == "127.0.0.1"
