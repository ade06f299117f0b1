"""
启动引导测试
验证签名密钥和管理员凭据缺失时拒绝启动
"""

import pytest
from datetime import timedelta

from core.bootstrap import build_auth_context, resolve_admin_password, resolve_jwt_secret, DEV_ADMIN_PASSWORD
from core.config import Settings
from core.errors import ConfigurationError


def make_settings(**overrides) -> Settings:
    values = {
        "debug": False,
        "jwt_secret": "bootstrap-secret",
        "admin_username": "admin",
        "admin_password": "bootstrap-pass",
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


class TestBootstrap:
    """鉴权组件构建测试"""

    def test_build_auth_context(self):
        context = build_auth_context(make_settings(jwt_expire_minutes=30))

        assert context.credential_store.verify("admin", "bootstrap-pass") is True
        assert context.token_service.ttl == timedelta(minutes=30)

        token = context.token_service.issue("admin").token
        assert context.token_service.validate(token).identity == "admin"

    @pytest.mark.parametrize("secret", [None, "", "   "])
    def test_missing_secret_in_production(self, secret):
        """生产模式缺少签名密钥时不使用默认值"""
        with pytest.raises(ConfigurationError):
            build_auth_context(make_settings(jwt_secret=secret))

    def test_missing_secret_in_debug(self):
        """调试模式生成随机临时密钥，两次启动的密钥不同"""
        settings = make_settings(debug=True, jwt_secret=None)

        first = resolve_jwt_secret(settings)
        second = resolve_jwt_secret(settings)

        assert first and second
        assert first != second

    def test_missing_admin_password_in_production(self):
        with pytest.raises(ConfigurationError):
            build_auth_context(make_settings(admin_password=None))

    def test_missing_admin_password_in_debug(self):
        settings = make_settings(debug=True, admin_password=None)

        assert resolve_admin_password(settings) == DEV_ADMIN_PASSWORD

    def test_admin_password_keeps_hash_sign(self):
        """密码中的 # 是密码的一部分，只去掉首尾空白"""
        settings = make_settings(admin_password="  abc#123 ")
        assert resolve_admin_password(settings) == "abc#123"

        context = build_auth_context(settings)
        assert context.credential_store.verify("admin", "abc#123") is True
        assert context.credential_store.verify("admin", "abc") is False

    def test_blank_admin_username(self):
        with pytest.raises(ConfigurationError):
            build_auth_context(make_settings(admin_username="  "))

    def test_create_app_aborts_without_secret(self):
        """应用构建阶段直接失败，不会开始处理请求"""
        from main import create_app

        with pytest.raises(ConfigurationError):
            create_app(make_settings(jwt_secret=None))
