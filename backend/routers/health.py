"""
健康检查路由
"""

from fastapi import APIRouter
from pydantic import BaseModel

from utils.timezone import get_utc_time, to_timestamp_ms

router = APIRouter(tags=["健康检查"])


class PingResponse(BaseModel):
    """存活检查响应"""
    ok: bool
    timestamp: int


@router.get("/api/ping", response_model=PingResponse)
async def ping():
    """存活检查，不访问数据库"""
    return {"ok": True, "timestamp": to_timestamp_ms(get_utc_time())}
