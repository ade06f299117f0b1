"""
视频模块路由
公开接口（随机视频、总数）无需登录，管理接口需要 Bearer 令牌
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.database import get_db
from core.security import require_admin, TokenClaims

from .video_schemas import VideoDraft, VideoItem, VideoAdminItem, VideoCreated, VideoCount
from .video_services import VideoService, parse_sample_size

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


# 公开接口

@router.get("/count", summary="获取视频总数", response_model=VideoCount)
async def get_video_count(db: AsyncSession = Depends(get_db)):
    """视频总数"""
    count = await VideoService.count_videos(db)
    return {"count": count}


@router.get("/random", summary="随机获取视频", response_model=List[VideoItem])
async def get_random_videos(
    count: Optional[str] = Query(None, description="数量，默认20，最大200"),
    db: AsyncSession = Depends(get_db)
):
    """随机抽取视频用于播放，数量参数非法时不报错而是使用默认值"""
    settings = get_settings()
    size = parse_sample_size(count, settings.sample_default_size, settings.sample_max_size)
    videos = await VideoService.sample_videos(db, size)
    return [VideoService.to_public_item(video) for video in videos]


# 管理接口

@admin_router.get("", summary="管理端视频列表", response_model=List[VideoAdminItem])
async def list_videos(
    db: AsyncSession = Depends(get_db),
    admin: TokenClaims = Depends(require_admin)
):
    """按创建时间倒序返回视频，最多 500 条"""
    videos = await VideoService.list_videos(db)
    return [VideoService.to_admin_item(video) for video in videos]


@admin_router.post("", summary="添加视频", response_model=VideoCreated)
async def create_video(
    data: VideoDraft,
    db: AsyncSession = Depends(get_db),
    admin: TokenClaims = Depends(require_admin)
):
    """登记一个外部媒体视频"""
    video = await VideoService.create_video(db, data)
    await db.commit()
    logger.info(f"管理员 {admin.identity} 添加视频: {video.id}")
    return VideoService.to_created_item(video)


@admin_router.put("/{video_id}", summary="更新视频", response_model=VideoAdminItem)
async def update_video(
    video_id: str,
    data: VideoDraft,
    db: AsyncSession = Depends(get_db),
    admin: TokenClaims = Depends(require_admin)
):
    """按ID替换视频信息（不存在时返回 404）"""
    video = await VideoService.update_video(db, video_id, data)
    await db.commit()
    logger.info(f"管理员 {admin.identity} 更新视频: {video.id}")
    return VideoService.to_admin_item(video)
