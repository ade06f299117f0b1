"""
速率限制模块
限制登录接口的请求频率，防止暴力破解管理员密码
"""

import time
import logging
from typing import Dict, Optional, Tuple
from collections import defaultdict
from dataclasses import dataclass

from fastapi import Request

from .config import Settings
from .errors import AppException, ErrorCode
from .middleware import get_client_ip

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """速率限制配置"""
    requests: int = 30       # 窗口内允许的请求数
    window: int = 60         # 时间窗口（秒）
    block_duration: int = 300  # 超限后封禁时间（秒）


@dataclass
class ClientState:
    """客户端状态"""
    requests: int = 0
    window_start: float = 0
    blocked_until: float = 0


class RateLimiter:
    """
    速率限制器
    固定窗口计数，按 (客户端IP, 路由) 分别统计
    """

    def __init__(self, clock=time.time, cleanup_interval: float = 60):
        self._clients: Dict[Tuple[str, str], ClientState] = defaultdict(ClientState)
        self._route_configs: Dict[str, RateLimitConfig] = {}
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    def configure_route(
        self,
        path: str,
        requests: int,
        window: int = 60,
        block_duration: int = 60
    ):
        """配置特定路由的速率限制"""
        self._route_configs[path] = RateLimitConfig(
            requests=requests,
            window=window,
            block_duration=block_duration
        )

    def check(self, client_ip: str, path: str) -> Tuple[bool, Optional[dict]]:
        """
        检查请求是否允许

        Returns:
            (allowed, info): allowed为是否允许，info包含限制信息
        """
        config = self._route_configs.get(path)
        if config is None:
            return True, None

        current_time = self._clock()
        if current_time - self._last_cleanup >= self._cleanup_interval:
            self.clear_expired(current_time)

        state = self._clients[(client_ip, path)]

        # 检查是否在封禁期
        if state.blocked_until > current_time:
            return False, {"retry_after": int(state.blocked_until - current_time) or 1}

        # 检查是否需要重置窗口
        if current_time - state.window_start >= config.window:
            state.requests = 0
            state.window_start = current_time

        state.requests += 1

        if state.requests > config.requests:
            state.blocked_until = current_time + config.block_duration
            logger.warning(f"IP {client_ip} 请求 {path} 超限，已封禁 {config.block_duration} 秒")
            return False, {"retry_after": config.block_duration}

        return True, {
            "remaining": config.requests - state.requests,
            "limit": config.requests,
        }

    def clear_expired(self, now: Optional[float] = None):
        """清理窗口已结束且未被封禁的记录"""
        current_time = self._clock() if now is None else now
        expired = []

        for key, state in self._clients.items():
            config = self._route_configs.get(key[1])
            window = config.window if config else 0
            if current_time - state.window_start >= window and state.blocked_until <= current_time:
                expired.append(key)

        for key in expired:
            del self._clients[key]

        self._last_cleanup = current_time
        if expired:
            logger.debug(f"清理 {len(expired)} 个过期速率限制记录")

    @property
    def tracked_clients(self) -> int:
        """当前保存的客户端记录数"""
        return len(self._clients)

    def reset(self):
        """清空所有客户端状态"""
        self._clients.clear()


def build_rate_limiter(settings: Settings, login_path: str) -> Optional[RateLimiter]:
    """按配置创建限制器，关闭时返回 None"""
    if not settings.rate_limit_enabled:
        logger.info("ℹ️ 登录速率限制已禁用")
        return None

    limiter = RateLimiter()
    limiter.configure_route(
        login_path,
        requests=settings.login_rate_limit_requests,
        window=settings.login_rate_limit_window,
        block_duration=settings.login_rate_limit_block_duration
    )
    logger.info(
        f"✅ 登录速率限制: {settings.login_rate_limit_requests} 请求/"
        f"{settings.login_rate_limit_window}秒，封禁时长: {settings.login_rate_limit_block_duration}秒"
    )
    return limiter


async def rate_limit(request: Request):
    """路由依赖：超限时返回 429"""
    limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    allowed, info = limiter.check(get_client_ip(request), request.url.path)
    if not allowed:
        raise AppException(
            ErrorCode.RATE_LIMIT_EXCEEDED,
            f"Too many requests, retry in {info['retry_after']} seconds",
            headers={"Retry-After": str(info["retry_after"])}
        )
