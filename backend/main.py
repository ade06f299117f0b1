"""
Shorts Catalog - 主入口
基于FastAPI的短视频目录服务

- 管理员登录与 Bearer 令牌鉴权
- 视频登记、管理端列表
- 公开的随机视频与总数接口
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings, Settings
from core.database import init_db, close_db
from core.bootstrap import build_auth_context
from core.rate_limit import build_rate_limiter
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.errors import register_exception_handlers

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    current_settings = app.state.settings
    logger.info(f"🚀 正在启动 {current_settings.app_name} v{current_settings.app_version}...")

    await init_db()
    logger.info(f"🎉 {current_settings.app_name} 启动完成!")

    yield

    logger.info("🛑 系统关闭中...")
    await close_db()
    logger.info("👋 系统已关闭")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    创建应用
    管理员凭据和签名密钥在这里一次性构建，配置缺失时抛出 ConfigurationError 终止启动
    """
    settings = settings or get_settings()
    auth_context = build_auth_context(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="短视频目录服务",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    # 启动后只读的共享状态
    app.state.settings = settings
    app.state.credential_store = auth_context.credential_store
    app.state.token_service = auth_context.token_service

    from routers import auth, health
    app.state.rate_limiter = build_rate_limiter(settings, auth.LOGIN_PATH)

    # ==================== 中间件配置（后添加的先执行） ====================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware, slow_request_threshold=1.0)

    # ==================== 异常处理器 ====================
    register_exception_handlers(app)

    # ==================== 注册路由 ====================
    from modules.video.video_router import router as video_router, admin_router as video_admin_router

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(video_router, prefix="/api/videos", tags=["视频"])
    app.include_router(video_admin_router, prefix="/api/admin/videos", tags=["视频管理"])

    return app


app = create_app()


# ==================== 启动入口 ====================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=4000,
        reload=get_settings().debug
    )
