"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

import logging
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional, List
from urllib.parse import quote_plus

logger = logging.getLogger(__name__)

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    # 应用信息
    app_name: str = "Shorts Catalog"
    app_version: str = "1.0.0"
    debug: bool = False

    # 数据库配置（设置 database_url 时优先使用）
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "shorts"

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+aiomysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    # JWT令牌配置（生产环境必须配置 JWT_SECRET，不提供默认值）
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 240  # 4小时

    # 管理员账户（启动时哈希，只保存在内存中）
    admin_username: str = "admin"
    admin_password: Optional[str] = None
    bcrypt_rounds: int = 10

    # 媒体链接模板，{media_id} 会被替换为存储的媒体ID
    media_url_template: str = "https://drive.google.com/uc?export=download&id={media_id}"

    # 视频目录
    sample_default_size: int = 20
    sample_max_size: int = 200
    admin_list_limit: int = 500

    # 跨域
    allow_origins: List[str] = ["*"]

    # 可信反向代理地址，只有来自这些地址的请求才使用 X-Forwarded-For / X-Real-IP
    trusted_proxies: List[str] = []

    # 登录接口速率限制
    rate_limit_enabled: bool = True
    login_rate_limit_requests: int = 30
    login_rate_limit_window: int = 60  # 时间窗口（秒）
    login_rate_limit_block_duration: int = 300  # 超限后封禁时间（秒）

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """获取配置单例"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        if _settings_instance.debug:
            logger.warning(
                "⚠️ 调试模式已开启，缺失的密钥配置将使用临时值，请勿用于生产环境"
            )
    return _settings_instance


def reload_settings():
    """
    重新加载配置
    已签发的令牌只在签名密钥不变时继续有效
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
