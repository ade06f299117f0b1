"""
统一鉴权模块
提供管理员凭据校验、JWT令牌签发/验证以及受保护接口的鉴权依赖

令牌是无状态的：有效性只取决于签名和过期时间，不维护吊销列表
"""

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import Request
from pydantic import BaseModel

from .errors import AuthException, ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)


# ==================== 密码处理 ====================

def hash_password(password: str, rounds: int = 12) -> str:
    """
    加密密码
    bcrypt 限制密码长度不超过 72 字节
    """
    if not isinstance(password, str):
        password = str(password)

    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码（bcrypt.checkpw 内部为常量时间比较）"""
    if not isinstance(plain_password, str):
        return False

    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


# ==================== 管理员凭据 ====================

@dataclass(frozen=True)
class AdminIdentity:
    """唯一的管理员身份，启动时构建，之后只读"""
    username: str
    password_hash: str = field(repr=False)


class CredentialStore:
    """
    管理员凭据存储
    只保存用户名和加盐哈希，原始密码在初始化后即丢弃
    """

    def __init__(self, identity: AdminIdentity):
        self._identity = identity

    @classmethod
    def initialize(cls, username: str, raw_password: str, rounds: int = 10) -> "CredentialStore":
        """
        根据配置的用户名和密码构建凭据存储

        Raises:
            ConfigurationError: 用户名/密码为空或哈希失败
        """
        if not username or not username.strip():
            raise ConfigurationError("管理员用户名不能为空")
        if not raw_password:
            raise ConfigurationError("管理员密码不能为空")

        try:
            password_hash = hash_password(raw_password, rounds=rounds)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"管理员密码哈希失败: {e}") from e

        return cls(AdminIdentity(username=username.strip(), password_hash=password_hash))

    @property
    def identity(self) -> AdminIdentity:
        return self._identity

    def verify(self, username: str, raw_password: str) -> bool:
        """用户名和密码都匹配时返回 True"""
        if not isinstance(username, str) or not isinstance(raw_password, str):
            return False

        username_ok = hmac.compare_digest(
            username.encode('utf-8'),
            self._identity.username.encode('utf-8')
        )
        # 用户名不匹配也执行一次哈希校验，避免通过响应时间区分失败原因
        password_ok = verify_password(raw_password, self._identity.password_hash)
        return username_ok and password_ok


# ==================== 令牌服务 ====================

class TokenError(Exception):
    """令牌验证失败基类"""


class MalformedTokenError(TokenError):
    """令牌无法解析"""


class InvalidSignatureError(TokenError):
    """签名不匹配"""


class TokenExpiredError(TokenError):
    """令牌已过期"""


class TokenClaims(BaseModel):
    """令牌声明"""
    identity: str
    issued_at: datetime
    expires_at: datetime


class IssuedToken(BaseModel):
    """签发结果"""
    token: str
    expires_at: datetime
    expires_in: int


class TokenService:
    """
    JWT 令牌服务
    签名密钥在启动时确定，进程运行期间不变
    """

    def __init__(self, secret: str, ttl: timedelta, algorithm: str = "HS256"):
        if not secret:
            raise ConfigurationError("JWT 签名密钥不能为空")
        if ttl.total_seconds() <= 0:
            raise ConfigurationError("令牌有效期必须大于 0")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = ttl

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def issue(self, identity: str, now: Optional[datetime] = None) -> IssuedToken:
        """为已验证的身份签发令牌"""
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        expires_at = issued_at + self.ttl

        to_encode = {
            "sub": identity,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(to_encode, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=expires_at, expires_in=self.ttl_seconds)

    def validate(self, token: str) -> TokenClaims:
        """
        验证令牌并返回声明

        Raises:
            MalformedTokenError: 令牌无法解析或缺少必需声明
            InvalidSignatureError: 签名与密钥不匹配
            TokenExpiredError: 当前时间不早于过期时间
        """
        if not token:
            raise MalformedTokenError("empty token")

        # 先做不验签的解析，区分"格式错误"和"签名错误"
        try:
            jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedTokenError(str(e)) from e

        if not isinstance(unverified.get("sub"), str) or not isinstance(unverified.get("exp"), int):
            raise MalformedTokenError("missing sub/exp claims")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError(str(e)) from e
        except JWTError as e:
            raise InvalidSignatureError(str(e)) from e

        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if datetime.now(timezone.utc) >= expires_at:
            raise TokenExpiredError("token expired")

        issued_at = payload.get("iat")
        return TokenClaims(
            identity=payload["sub"],
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc) if isinstance(issued_at, int) else expires_at - self.ttl,
            expires_at=expires_at,
        )


# ==================== 鉴权依赖 ====================

def get_credential_store(request: Request) -> CredentialStore:
    """从应用状态中获取凭据存储"""
    return request.app.state.credential_store


def get_token_service(request: Request) -> TokenService:
    """从应用状态中获取令牌服务"""
    return request.app.state.token_service


def extract_bearer_token(header: Optional[str]) -> str:
    """
    解析 Authorization 头，只接受 "Bearer <token>" 格式

    Raises:
        AuthException: 缺少头（UNAUTHORIZED）或格式错误（CREDENTIALS_MALFORMED）
    """
    if header is None or not header.strip():
        raise AuthException(ErrorCode.UNAUTHORIZED)

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthException(ErrorCode.CREDENTIALS_MALFORMED)
    return parts[1]


async def require_admin(request: Request) -> TokenClaims:
    """
    受保护接口的鉴权依赖
    验证通过后把声明挂到 request.state.admin 上
    """
    token = extract_bearer_token(request.headers.get("Authorization"))

    try:
        claims = get_token_service(request).validate(token)
    except TokenExpiredError:
        raise AuthException(ErrorCode.TOKEN_EXPIRED)
    except TokenError as e:
        logger.warning(f"拒绝无效令牌 - {request.method} {request.url.path}: {type(e).__name__}")
        raise AuthException(ErrorCode.TOKEN_INVALID)

    request.state.admin = claims
    return claims
