"""
视频模块数据模型
定义数据库表结构
"""

import uuid
from sqlalchemy import Column, String, Text, DateTime, JSON

from core.database import Base
from utils.timezone import get_utc_time


# 外部媒体ID最大长度，超过时写入接口返回 400
MEDIA_ID_MAX_LENGTH = 255


def generate_video_id() -> str:
    """生成视频ID（32位十六进制）"""
    return uuid.uuid4().hex


class Video(Base):
    """
    视频数据表
    只保存外部媒体的引用，播放地址在读取时生成
    """
    __tablename__ = "videos"
    __table_args__ = {'comment': '视频表'}

    id = Column(String(32), primary_key=True, default=generate_video_id, comment="视频ID")

    title = Column(Text, nullable=False, default="", comment="视频标题")
    description = Column(Text, nullable=False, default="", comment="视频描述")
    media_id = Column(String(MEDIA_ID_MAX_LENGTH), nullable=False, comment="外部媒体ID")
    tags = Column(JSON, nullable=False, default=list, comment="标签列表（保持原始顺序）")

    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_time, index=True, comment="创建时间")

    def __repr__(self):
        return f"<Video(id={self.id}, media_id={self.media_id})>"
