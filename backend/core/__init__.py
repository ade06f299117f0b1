"""
Shorts Catalog 核心模块
提供服务的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, get_db, async_session
- 安全认证: CredentialStore, TokenService, require_admin
- 错误处理: ErrorCode, AppException, ConfigurationError, error_response
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, get_db, async_session, init_db, close_db

# 安全认证
from .security import (
    AdminIdentity,
    CredentialStore,
    TokenService,
    TokenClaims,
    IssuedToken,
    TokenError,
    MalformedTokenError,
    InvalidSignatureError,
    TokenExpiredError,
    require_admin,
    hash_password,
    verify_password,
)

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ConfigurationError,
    ValidationException,
    AuthException,
    NotFoundException,
    error_response,
    register_exception_handlers
)
