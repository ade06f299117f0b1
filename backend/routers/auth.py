"""
认证路由
管理员登录、令牌签发

安全措施：
- 登录接口按IP限流（防止暴力破解）
- 用户名或密码错误统一返回 "Invalid credentials"
"""

import logging
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from core.errors import AuthException, ErrorCode, ValidationException
from core.middleware import get_client_ip
from core.rate_limit import rate_limit
from core.security import get_credential_store, get_token_service
from schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["认证"])

LOGIN_PATH = "/api/admin/login"


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(rate_limit)])
async def login(data: LoginRequest, request: Request):
    """管理员登录，成功后返回 Bearer 令牌"""
    if not data.username or not data.password:
        raise ValidationException("username and password required")

    credential_store = get_credential_store(request)
    # bcrypt 校验是 CPU 密集操作，放到线程池避免阻塞事件循环
    matched = await run_in_threadpool(credential_store.verify, data.username, data.password)
    if not matched:
        logger.warning(f"登录失败 - IP: {get_client_ip(request)}, 用户名: {data.username}")
        raise AuthException(ErrorCode.LOGIN_FAILED)

    issued = get_token_service(request).issue(data.username)
    logger.info(f"管理员登录成功 - IP: {get_client_ip(request)}")

    return {
        "token": issued.token,
        "expiresIn": issued.expires_in,
    }
