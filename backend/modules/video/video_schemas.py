"""
视频模块数据验证
定义请求/响应的数据结构

请求字段保持宽松：title/description/tags 接受任意 JSON 值，
在业务层统一转换为字符串，不因类型不符而拒绝
"""

from typing import Any, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class VideoDraft(BaseModel):
    """创建/更新视频请求"""
    model_config = ConfigDict(populate_by_name=True)

    title: Any = Field("", description="视频标题")
    description: Any = Field("", description="视频描述")
    media_id: Any = Field(
        None,
        validation_alias=AliasChoices("mediaId", "driveId", "media_id"),
        description="外部媒体ID（兼容旧字段 driveId）"
    )
    tags: Any = Field(default_factory=list, description="标签列表")


class VideoItem(BaseModel):
    """公开视频响应（随机列表）"""
    id: str = Field(..., description="视频ID")
    title: str = Field("", description="视频标题")
    description: str = Field("", description="视频描述")
    tags: List[str] = Field(default_factory=list, description="标签列表")
    url: str = Field(..., description="播放地址")


class VideoAdminItem(VideoItem):
    """管理端视频响应"""
    createdAt: str = Field(..., description="创建时间（ISO 8601）")


class VideoCreated(BaseModel):
    """创建视频响应"""
    id: str = Field(..., description="视频ID")
    title: str = Field("", description="视频标题")
    description: str = Field("", description="视频描述")
    url: str = Field(..., description="播放地址")
    createdAt: str = Field(..., description="创建时间（ISO 8601）")


class VideoCount(BaseModel):
    """视频总数响应"""
    count: int = Field(..., description="视频总数")
