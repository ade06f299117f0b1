"""
请求/响应数据模型
"""

from .auth import LoginRequest, LoginResponse

__all__ = ["LoginRequest", "LoginResponse"]
