"""
公开查看 API：按分享 ID 读取（可带 ?password=），每次成功读取浏览数 +1。
"""

from typing import Optional

from fastapi import APIRouter, Depends

from share_api.api.responses import ok
from share_api.api.routes_share import get_base_url
from share_api.share import service

router = APIRouter(prefix="/api/s", tags=["view"])


@router.get("/{share_id}")
def get_share(
    share_id: str,
    password: Optional[str] = None,
    base_url: str = Depends(get_base_url),
) -> dict:
    return ok(service.read_share(share_id, base_url, password=password))
