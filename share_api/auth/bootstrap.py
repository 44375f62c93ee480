"""
首用户引导：无用户时生成一次性令牌（写入 DATA_DIR/bootstrap_token.txt），
持令牌调用 POST /api/bootstrap 创建第一个用户。

令牌 15 分钟过期，used 只会从 false 变为 true。两次引导请求并发时的竞争不做处理
（引导只在安装时手工执行一次）。
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

from config.settings import settings
from share_api.auth import ids
from share_api.db import ensure_data_dir, store
from share_api.db.models import BootstrapToken, User, utc_now
from share_api.errors import BadRequestError, UnauthenticatedError
from share_api.log import get_logger

logger = get_logger(__name__)


def token_file_path() -> Path:
    return Path(settings.data_dir) / settings.bootstrap.token_filename


def write_token_file(token: str) -> Path:
    """Write ``token + "\\n"`` with mode 0600, creating DATA_DIR (0755) if needed."""
    ensure_data_dir()
    path = token_file_path()
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(token + "\n")
    os.chmod(path, 0o600)
    return path


def ensure_bootstrap_token() -> Optional[BootstrapToken]:
    """
    启动时调用：
    - 已有用户 → None
    - 存在未使用且未过期的令牌 → 沿用
    - 否则生成新令牌并写文件
    """
    if store.count_users() > 0:
        return None

    live = store.find_live_bootstrap_token()
    if live is not None:
        logger.info("[bootstrap] unused token still valid until %s", live.expires_at.isoformat())
        return live

    token = ids.bootstrap_token()
    expires_at = utc_now() + timedelta(minutes=settings.bootstrap.token_ttl_minutes)
    bt = store.create_bootstrap_token(token, expires_at)
    path = write_token_file(token)
    logger.info(
        "[bootstrap] token generated, expires in %dm, file: %s",
        settings.bootstrap.token_ttl_minutes,
        path,
    )
    return bt


def check_bootstrap_token(token: Optional[str]) -> BootstrapToken:
    """校验引导前置条件，顺序：已有用户(400) → 缺头(401) → 无效(401) → 过期(401)."""
    if store.count_users() > 0:
        raise BadRequestError("Bootstrap not allowed: users already exist")
    if not token:
        raise UnauthenticatedError("X-Bootstrap-Token header required")

    bt = store.get_unused_bootstrap_token(token)
    if bt is None:
        logger.warning("[bootstrap] rejected: invalid token")
        raise UnauthenticatedError("Invalid bootstrap token")
    if bt.is_expired():
        logger.warning("[bootstrap] rejected: token expired at %s", bt.expires_at.isoformat())
        raise UnauthenticatedError("Bootstrap token expired")
    return bt


def complete_bootstrap(bt: BootstrapToken, username: str, email: str) -> User:
    """创建首用户并消费令牌。"""
    user = store.create_user(username, email)
    store.mark_bootstrap_token_used(bt.id)
    logger.info("[bootstrap] first user created: %s (%s)", user.username, user.id)
    return user
