"""
视频模块业务逻辑
实现视频目录的写入、计数、随机抽样和管理端列表
"""

import json
import math
import random
import logging
from typing import Any, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.errors import ValidationException, NotFoundException
from utils.timezone import to_iso

from .video_models import Video, MEDIA_ID_MAX_LENGTH
from .video_schemas import VideoDraft

logger = logging.getLogger(__name__)


def resolve_media_url(media_id: str, template: Optional[str] = None) -> str:
    """
    将媒体ID转换为可直接播放的地址
    不做任何校验，媒体ID在写入时已验证
    """
    template = template or get_settings().media_url_template
    return template.format(media_id=media_id)


def _to_text(value: Any) -> str:
    """把任意 JSON 值转换为字符串"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def parse_sample_size(raw: Optional[str], default: int, maximum: int) -> int:
    """
    解析随机抽样数量
    无法解析、为 0 或缺省时使用默认值，结果限制在 [1, maximum]
    """
    try:
        requested = float(raw) if raw is not None else 0
    except ValueError:
        requested = 0
    if math.isnan(requested) or requested == 0:
        requested = default
    if math.isinf(requested):
        return maximum if requested > 0 else 1
    return max(1, min(maximum, int(requested)))


class VideoService:
    """
    视频服务类
    只有管理员可以写入，公开接口只读
    """

    @staticmethod
    def normalize_draft(data: VideoDraft) -> dict:
        """
        校验并规范化请求数据

        Raises:
            ValidationException: mediaId 缺失、不是字符串或去空白后为空，或超过最大长度
        """
        if data.media_id is None:
            raise ValidationException("mediaId required")
        if not isinstance(data.media_id, str) or not data.media_id.strip():
            raise ValidationException("Invalid mediaId")
        if len(data.media_id.strip()) > MEDIA_ID_MAX_LENGTH:
            raise ValidationException(f"mediaId must be at most {MEDIA_ID_MAX_LENGTH} characters")

        tags = data.tags if isinstance(data.tags, list) else []
        return {
            "title": _to_text(data.title).strip(),
            "description": _to_text(data.description).strip(),
            "media_id": data.media_id.strip(),
            "tags": [_to_text(tag) for tag in tags],
        }

    @staticmethod
    async def create_video(db: AsyncSession, data: VideoDraft) -> Video:
        """创建视频（校验失败时不写入任何数据）"""
        fields = VideoService.normalize_draft(data)
        video = Video(**fields)
        db.add(video)
        await db.flush()
        await db.refresh(video)
        logger.info(f"创建视频: id={video.id}, media_id={video.media_id}")
        return video

    @staticmethod
    async def get_video_by_id(db: AsyncSession, video_id: str) -> Optional[Video]:
        """根据ID获取视频"""
        result = await db.execute(select(Video).where(Video.id == video_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_video(db: AsyncSession, video_id: str, data: VideoDraft) -> Video:
        """
        按ID替换视频字段
        mediaId 与创建时相同规则校验；请求中未提供的字段保持原值，创建时间不变
        """
        fields = VideoService.normalize_draft(data)

        video = await VideoService.get_video_by_id(db, video_id)
        if not video:
            raise NotFoundException("Video", video_id)

        provided = data.model_fields_set
        video.media_id = fields["media_id"]
        for name in ("title", "description", "tags"):
            if name in provided:
                setattr(video, name, fields[name])

        await db.flush()
        await db.refresh(video)
        logger.info(f"更新视频: id={video.id}")
        return video

    @staticmethod
    async def count_videos(db: AsyncSession) -> int:
        """视频总数"""
        result = await db.execute(select(func.count(Video.id)))
        return result.scalar() or 0

    @staticmethod
    async def sample_videos(db: AsyncSession, size: int) -> List[Video]:
        """
        从全部视频中无放回地均匀随机抽取
        数量不足时返回全部，返回顺序随机
        """
        settings = get_settings()
        size = max(1, min(settings.sample_max_size, size))

        id_result = await db.execute(select(Video.id))
        all_ids = list(id_result.scalars().all())
        if not all_ids:
            return []

        chosen = random.sample(all_ids, min(size, len(all_ids)))
        result = await db.execute(select(Video).where(Video.id.in_(chosen)))
        videos = list(result.scalars().all())
        random.shuffle(videos)
        return videos

    @staticmethod
    async def list_videos(db: AsyncSession, limit: Optional[int] = None) -> List[Video]:
        """按创建时间倒序列出视频，数量有上限"""
        cap = get_settings().admin_list_limit
        limit = cap if limit is None else max(1, min(cap, limit))

        result = await db.execute(
            select(Video).order_by(Video.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    # ==================== 响应构建 ====================

    @staticmethod
    def get_video_url(video: Video) -> str:
        """获取视频播放地址"""
        return resolve_media_url(video.media_id)

    @staticmethod
    def to_public_item(video: Video) -> dict:
        """公开接口返回的字段"""
        return {
            "id": video.id,
            "title": video.title,
            "description": video.description,
            "tags": list(video.tags or []),
            "url": VideoService.get_video_url(video),
        }

    @staticmethod
    def to_admin_item(video: Video) -> dict:
        """管理端返回的字段"""
        item = VideoService.to_public_item(video)
        item["createdAt"] = to_iso(video.created_at)
        return item

    @staticmethod
    def to_created_item(video: Video) -> dict:
        """创建接口返回的字段"""
        return {
            "id": video.id,
            "title": video.title,
            "description": video.description,
            "url": VideoService.get_video_url(video),
            "createdAt": to_iso(video.created_at),
        }
