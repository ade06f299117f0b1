"""
标准错误码体系
提供统一的错误码定义和异常处理
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    DATABASE_ERROR = 1001           # 数据库错误
    CONFIG_ERROR = 1003             # 配置错误
    RATE_LIMIT_EXCEEDED = 1005      # 请求频率超限

    # ==================== 认证/授权错误 (2xxx) ====================
    UNAUTHORIZED = 2001             # 未携带认证信息
    TOKEN_EXPIRED = 2002            # 令牌过期
    TOKEN_INVALID = 2003            # 令牌无效（签名不符或无法解析）
    PERMISSION_DENIED = 2004        # 权限不足
    LOGIN_FAILED = 2007             # 用户名或密码错误
    CREDENTIALS_MALFORMED = 2013    # Authorization 头格式错误

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在


# 错误码对应的默认消息（直接返回给调用方，不包含内部细节）
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "OK",

    ErrorCode.INTERNAL_ERROR: "Server error",
    ErrorCode.DATABASE_ERROR: "Server error",
    ErrorCode.CONFIG_ERROR: "Server misconfigured",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests",

    ErrorCode.UNAUTHORIZED: "No authorization header",
    ErrorCode.TOKEN_EXPIRED: "Token expired",
    ErrorCode.TOKEN_INVALID: "Invalid token",
    ErrorCode.PERMISSION_DENIED: "Forbidden",
    ErrorCode.LOGIN_FAILED: "Invalid credentials",
    ErrorCode.CREDENTIALS_MALFORMED: "Malformed authorization header",

    ErrorCode.VALIDATION_ERROR: "Invalid request",
    ErrorCode.RESOURCE_NOT_FOUND: "Not found",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,

    # 认证/授权 -> 401/403（过期可重新登录，伪造的令牌直接拒绝）
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_403_FORBIDDEN,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOGIN_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.CREDENTIALS_MALFORMED: status.HTTP_401_UNAUTHORIZED,

    # 业务通用 -> 400/404
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


class ConfigurationError(RuntimeError):
    """
    启动配置错误
    缺少签名密钥或管理员凭据时抛出，进程不得继续启动
    """


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "Video not found")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"field": "mediaId"})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.data = data
        self.headers = headers
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict(),
            headers=self.headers
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return error_response(self.code, self.message, self.data)


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "Invalid request", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常（401 时附带 WWW-Authenticate 头）"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        headers = None
        if ERROR_HTTP_STATUS.get(code) == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(code=code, message=message, headers=headers)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} (ID: {resource_id}) not found"
        super().__init__(
            code=ErrorCode.RESOURCE_NOT_FOUND,
            message=message
        )


# ==================== 异常处理器 ====================

async def app_exception_handler(request, exc: AppException):
    """AppException 异常处理器"""
    return exc.to_response()


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from sqlalchemy.exc import SQLAlchemyError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(AppException, app_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_response(
                ErrorCode.VALIDATION_ERROR,
                _first_validation_message(errors),
                {"errors": errors}
            )
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request, exc: SQLAlchemyError):
        logger.error(f"数据库异常 {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response(ErrorCode.DATABASE_ERROR)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到业务错误码
        code_mapping = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.PERMISSION_DENIED,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            429: ErrorCode.RATE_LIMIT_EXCEEDED,
            500: ErrorCode.INTERNAL_ERROR,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        if exc.status_code == 404:
            message = ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]
        else:
            message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "Request failed")

        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code, message),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request, exc: Exception):
        logger.error(f"未处理异常 {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response(ErrorCode.INTERNAL_ERROR)
        )


def _first_validation_message(errors: list) -> str:
    """缺少必填字段时给出字段名，其余情况使用通用消息"""
    missing = [e["field"].split(".")[-1] for e in errors if e["type"] == "missing"]
    if missing:
        return f"{' and '.join(missing)} required"
    return ERROR_MESSAGES[ErrorCode.VALIDATION_ERROR]


# ==================== 响应构建器 ====================

def error_response(
    code: int = ErrorCode.INTERNAL_ERROR,
    message: Optional[str] = None,
    data: Any = None
) -> dict:
    """构建错误响应"""
    return {
        "code": int(code),
        "error": message or ERROR_MESSAGES.get(code, "Request failed"),
        "data": data
    }
