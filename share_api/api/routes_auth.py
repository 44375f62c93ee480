"""
认证 API：Bearer 依赖、首用户引导、token 自检、当前用户信息。
"""

import json
import time
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from share_api.api.responses import ok
from share_api.api.schemas import BootstrapRequest, BootstrapResponse
from share_api.auth.authenticator import CurrentUser, authenticate
from share_api.auth.bootstrap import check_bootstrap_token, complete_bootstrap
from share_api.db import store
from share_api.errors import BadRequestError, NotFoundError

router = APIRouter(prefix="/api", tags=["auth"])


def get_current_user(request: Request, authorization: str | None = Header(None)) -> CurrentUser:
    """Dependency: require a valid bearer token; the resolved user is also put on request.state."""
    user = authenticate(authorization)
    request.state.user_id = user.user_id
    request.state.username = user.username
    return user


def _parse_bootstrap_body(raw: bytes) -> BootstrapRequest:
    try:
        payload: Any = json.loads(raw or b"null")
    except ValueError as e:
        raise BadRequestError(f"Invalid request: {e}") from e
    if not isinstance(payload, dict):
        raise BadRequestError("Invalid request: body must be a JSON object")
    try:
        return BootstrapRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise BadRequestError(f"Invalid request: {fields} required") from e


@router.post("/bootstrap")
async def bootstrap(request: Request, x_bootstrap_token: str | None = Header(None)) -> dict:
    """持一次性引导令牌创建首用户，返回其 API token。"""
    bt = await run_in_threadpool(check_bootstrap_token, x_bootstrap_token)
    body = _parse_bootstrap_body(await request.body())
    user = await run_in_threadpool(complete_bootstrap, bt, body.username, body.email)
    data = BootstrapResponse(user_id=user.id, api_token=user.api_token)
    return ok(data.model_dump(by_alias=True))


@router.get("/auth/health")
def auth_health(user: CurrentUser = Depends(get_current_user)) -> dict:
    """校验 API token 是否有效。"""
    return ok({"status": "ok", "userId": user.user_id, "ts": int(time.time())})


@router.get("/user/me")
def me(user: CurrentUser = Depends(get_current_user)) -> dict:
    """当前用户信息（不含 API token）。"""
    row = store.get_user(user.user_id)
    if row is None:
        raise NotFoundError("User not found")
    return ok(row.to_profile())
