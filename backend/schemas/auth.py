"""
认证相关数据模型
"""

from typing import Optional
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """登录请求（必填校验在路由中完成，统一返回 400）"""
    username: Optional[str] = Field(None, description="用户名")
    password: Optional[str] = Field(None, description="密码")


class LoginResponse(BaseModel):
    """登录响应"""
    token: str = Field(..., description="Bearer 令牌")
    expiresIn: int = Field(..., description="有效期（秒）")
