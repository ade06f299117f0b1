# -*- coding: utf-8 -*-
"""
时区工具模块
数据库统一存储 UTC 时间
"""

from datetime import datetime, timezone
from typing import Optional


def get_utc_time() -> datetime:
    """
    获取当前 UTC 时间

    Returns:
        datetime: 带有 UTC 时区信息的当前时间
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    补全时区信息
    SQLite 读取出的时间不带时区，按 UTC 处理
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """格式化为 ISO 8601 字符串（UTC）"""
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None


def to_timestamp_ms(dt: datetime) -> int:
    """转换为毫秒时间戳"""
    return int(ensure_utc(dt).timestamp() * 1000)
