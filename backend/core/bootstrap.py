"""
系统引导初始化
启动时根据配置构建管理员凭据和令牌服务，配置缺失时终止启动
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from .config import Settings
from .errors import ConfigurationError
from .security import CredentialStore, TokenService

logger = logging.getLogger(__name__)

# 仅调试模式可用的管理员密码
DEV_ADMIN_PASSWORD = "password123"


@dataclass(frozen=True)
class AuthContext:
    """启动阶段构建完成的鉴权组件"""
    credential_store: CredentialStore
    token_service: TokenService


def _clean_password(raw: str) -> str:
    """去掉首尾空白，其余字符（包括 #）都属于密码"""
    return raw.strip()


def resolve_jwt_secret(settings: Settings) -> str:
    """获取签名密钥，生产环境缺失时报错，调试模式使用临时随机密钥"""
    if settings.jwt_secret and settings.jwt_secret.strip():
        return settings.jwt_secret.strip()

    if not settings.debug:
        raise ConfigurationError("未配置 JWT_SECRET，生产模式下拒绝启动")

    logger.warning("⚠️ 未配置 JWT_SECRET，已生成临时随机密钥，重启后已签发的令牌全部失效")
    return secrets.token_urlsafe(48)


def resolve_admin_password(settings: Settings) -> str:
    """获取管理员密码，生产环境缺失时报错"""
    password = _clean_password(settings.admin_password or "")
    if password:
        if len(password.encode('utf-8')) > 72:
            logger.warning("管理员密码超过 72 字节，bcrypt 只使用前 72 字节")
        return password

    if not settings.debug:
        raise ConfigurationError("未配置 ADMIN_PASSWORD，生产模式下拒绝启动")

    logger.warning(f"⚠️ 未配置 ADMIN_PASSWORD，调试模式使用默认密码，管理员: {settings.admin_username}")
    return DEV_ADMIN_PASSWORD


def build_auth_context(settings: Settings) -> AuthContext:
    """
    构建管理员凭据存储和令牌服务

    Raises:
        ConfigurationError: 签名密钥或管理员凭据缺失/无效
    """
    secret = resolve_jwt_secret(settings)
    password = resolve_admin_password(settings)

    credential_store = CredentialStore.initialize(
        settings.admin_username,
        password,
        rounds=settings.bcrypt_rounds
    )
    token_service = TokenService(
        secret,
        ttl=timedelta(minutes=settings.jwt_expire_minutes),
        algorithm=settings.jwt_algorithm
    )

    logger.info(f"✅ 管理员凭据已在内存中完成哈希: {credential_store.identity.username}")
    return AuthContext(credential_store=credential_store, token_service=token_service)
