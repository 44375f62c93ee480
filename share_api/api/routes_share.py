"""
分享管理 API（需 Bearer）：创建/复用、列表、单个关闭、批量关闭。
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from share_api.api.responses import ok
from share_api.api.routes_auth import get_current_user
from share_api.api.schemas import BatchDeleteRequest, CreateShareRequest
from share_api.auth.authenticator import CurrentUser
from share_api.errors import BadRequestError
from share_api.share import service
from share_api.share.urls import resolve_base_url

router = APIRouter(prefix="/api/share", tags=["share"])


def get_base_url(request: Request) -> str:
    """Dependency: externally visible base URL for share links."""
    return resolve_base_url(request.headers, scheme=request.url.scheme)


@router.post("/create")
def create_share(
    body: CreateShareRequest,
    base_url: str = Depends(get_base_url),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    share, reused = service.create_share(
        user.user_id,
        doc_id=body.doc_id,
        doc_title=body.doc_title,
        content=body.content,
        expire_days=body.expire_days,
        require_password=body.require_password,
        password=body.password,
        is_public=body.is_public,
        references=body.references_payload(),
        parent_share_id=body.parent_share_id,
    )
    return ok(service.create_result(share, reused, base_url))


@router.get("/list")
def list_shares(
    page: Optional[str] = None,
    size: Optional[str] = None,
    base_url: str = Depends(get_base_url),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """分页列出当前用户的分享（含已过期），按创建时间倒序。"""
    return ok(service.list_shares(user.user_id, base_url, page=page, size=size))


def _parse_batch_body(raw: bytes) -> BatchDeleteRequest:
    # 空 body 或 null 视为未指定 ID；其余必须是 JSON 对象
    if not raw.strip():
        return BatchDeleteRequest()
    try:
        payload: Any = json.loads(raw)
    except ValueError as e:
        raise BadRequestError(f"Invalid request: {e}") from e
    if payload is None:
        return BatchDeleteRequest()
    if not isinstance(payload, dict):
        raise BadRequestError("Invalid request: body must be a JSON object")
    try:
        return BatchDeleteRequest.model_validate(payload)
    except ValidationError as e:
        raise BadRequestError(f"Invalid request: {e}") from e


# 必须注册在 /{share_id} 之前
@router.delete("/batch")
async def delete_shares_batch(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    body = _parse_batch_body(await request.body())
    result = await run_in_threadpool(service.delete_shares_batch, user.user_id, body.share_ids)
    return ok(result)


@router.delete("/{share_id}")
def delete_share(
    share_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    service.delete_share(user.user_id, share_id)
    return ok()
