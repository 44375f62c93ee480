"""
分享生命周期：创建/复用、列表、单个与批量删除、公开读取。

同一 (user_id, doc_id) 最多保留一个未删除且未过期的分享：重复创建时更新该记录
（reused=True）。读-再-写之间没有事务，并发创建可能短暂产生两条记录，之后的查询
总取最新一条。
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Optional

from config.settings import settings
from share_api.auth import ids
from share_api.auth.password import (
    check_password_length,
    hash_password,
    normalize_password,
    verify_password,
)
from share_api.db import store
from share_api.db.models import Share, iso_z, utc_now
from share_api.errors import (
    BadRequestError,
    GoneError,
    NotFoundError,
    ShareAPIError,
    UnauthenticatedError,
)
from share_api.log import get_logger
from share_api.share.references import parse_references, rewrite_block_references
from share_api.share.urls import share_url

logger = get_logger(__name__)

_MAX_INT64 = 2**63 - 1


# ── Create / reuse ────────────────────────────────────────────────────────────

def _check_expire_days(expire_days: int) -> None:
    lo, hi = settings.share.min_expire_days, settings.share.max_expire_days
    if not lo <= expire_days <= hi:
        raise BadRequestError(f"expireDays must be between {lo} and {hi}")


def _check_password(require_password: bool, password: str, existing: Optional[Share]) -> None:
    if not require_password:
        return
    if password:
        try:
            check_password_length(password, settings.share.min_password_length)
        except ValueError as e:
            raise BadRequestError(str(e)) from e
    elif existing is None or not existing.password_hash:
        raise BadRequestError("Password must be provided for new share")


def create_share(
    user_id: str,
    *,
    doc_id: str,
    doc_title: str,
    content: str,
    expire_days: int,
    require_password: bool = False,
    password: Optional[str] = None,
    is_public: bool = True,
    references: Optional[List[Dict[str, Any]]] = None,
    parent_share_id: Optional[str] = None,
) -> tuple[Share, bool]:
    """
    创建分享，或复用该文档现存的有效分享。返回 (share, reused)。

    密码策略：
    - require_password=False → 清空 password_hash
    - 提供了新密码 → 重新哈希
    - 未提供密码 → 沿用旧哈希（仅复用路径可达）
    """
    _check_expire_days(expire_days)

    existing = store.find_active_share_by_doc(user_id, doc_id)
    if existing is not None and existing.is_expired():
        existing = None

    password = normalize_password(password)
    _check_password(require_password, password, existing)

    reused = existing is not None
    if reused:
        share = existing
    else:
        share = Share(id=ids.share_id(), user_id=user_id, doc_id=doc_id)

    share.doc_title = doc_title
    share.content = content
    share.require_password = require_password
    share.is_public = is_public
    share.expire_at = utc_now() + timedelta(days=expire_days)
    share.parent_share_id = parent_share_id or None
    share.set_references(references)

    if require_password:
        if password:
            try:
                share.password_hash = hash_password(password)
            except ValueError as e:
                raise BadRequestError(f"Invalid password: {e}") from e
    else:
        share.password_hash = ""

    if reused:
        share = store.update_share(share)
        logger.info("[share] reused %s for doc %s (user %s)", share.id, doc_id, user_id)
    else:
        share = store.insert_share(share)
        logger.info("[share] created %s for doc %s (user %s)", share.id, doc_id, user_id)
    return share, reused


def create_result(share: Share, reused: bool, base_url: str) -> Dict[str, Any]:
    return {
        "shareId": share.id,
        "shareUrl": share_url(base_url, share.id),
        "docId": share.doc_id,
        "docTitle": share.doc_title,
        "requirePassword": share.require_password,
        "expireAt": iso_z(share.expire_at),
        "isPublic": share.is_public,
        "createdAt": iso_z(share.created_at),
        "updatedAt": iso_z(share.updated_at),
        "reused": reused,
    }


# ── List ──────────────────────────────────────────────────────────────────────

def _parse_positive_int(raw: Any) -> Optional[int]:
    """Integer value of *raw*, or None when missing, malformed or too large to page with."""
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    # (page - 1) * size must fit a signed 64-bit OFFSET
    if value > _MAX_INT64 // settings.share.max_page_size:
        return None
    return value


def clamp_page(raw: Any) -> int:
    value = _parse_positive_int(raw)
    return value if value is not None and value > 0 else 1


def clamp_size(raw: Any) -> int:
    value = _parse_positive_int(raw)
    if value is None or value <= 0:
        return settings.share.default_page_size
    return min(value, settings.share.max_page_size)


def list_item(share: Share, base_url: str) -> Dict[str, Any]:
    return {
        "id": share.id,
        "docId": share.doc_id,
        "docTitle": share.doc_title,
        "requirePassword": share.require_password,
        "expireAt": iso_z(share.expire_at),
        "isPublic": share.is_public,
        "viewCount": share.view_count,
        "createdAt": iso_z(share.created_at),
        "shareUrl": share_url(base_url, share.id),
    }


def list_shares(user_id: str, base_url: str, page: Any = None, size: Any = None) -> Dict[str, Any]:
    """Newest first; expired shares are included."""
    page = clamp_page(page)
    size = clamp_size(size)
    total = store.count_user_shares(user_id)
    rows = store.list_user_shares(user_id, offset=(page - 1) * size, limit=size)
    return {
        "items": [list_item(s, base_url) for s in rows],
        "page": page,
        "size": size,
        "total": total,
    }


# ── Delete ────────────────────────────────────────────────────────────────────

def delete_share(user_id: str, share_id: str) -> None:
    if not store.delete_share(share_id, user_id):
        raise NotFoundError("Share not found or unauthorized")
    logger.info("[share] deleted %s (user %s)", share_id, user_id)


def delete_shares_batch(user_id: str, share_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    批量关闭分享（尽力而为）：
    - share_ids 为空 → 删除该用户全部分享，返回 {"deletedAllCount": n}
    - 否则逐个删除，单个失败记入 failed，不中断其余
    """
    if not share_ids:
        count = store.delete_shares_by_user(user_id)
        logger.info("[share] deleted all %d share(s) of user %s", count, user_id)
        return {"deletedAllCount": count}

    deleted: List[str] = []
    not_found: List[str] = []
    failed: Dict[str, str] = {}
    for raw_id in share_ids:
        share_id = (raw_id or "").strip()
        if not share_id:
            continue
        try:
            ok = store.delete_share(share_id, user_id)
        except ShareAPIError as e:
            failed[share_id] = e.message
            continue
        if ok:
            deleted.append(share_id)
        else:
            not_found.append(share_id)

    result: Dict[str, Any] = {"deleted": deleted, "notFound": not_found}
    if failed:
        result["failed"] = failed
    logger.info(
        "[share] batch delete by %s: deleted=%d notFound=%d failed=%d",
        user_id, len(deleted), len(not_found), len(failed),
    )
    return result


# ── Public read ───────────────────────────────────────────────────────────────

def render_content(share: Share, base_url: str) -> str:
    """Content with block references rewritten; unparseable references leave it unchanged."""
    refs = parse_references(share.get_references())
    if not refs:
        return share.content

    def _find_block_share_id(block_id: str) -> Optional[str]:
        try:
            block_share = store.find_active_share_by_doc(share.user_id, block_id)
        except ShareAPIError as e:
            logger.warning("[share] block share lookup failed for %s: %s", block_id, e.message)
            return None
        return block_share.id if block_share else None

    return rewrite_block_references(
        share.content,
        refs,
        base_url,
        _find_block_share_id,
        preview_length=settings.share.preview_length,
    )


def read_share(share_id: str, base_url: str, password: Optional[str] = None) -> Dict[str, Any]:
    """公开读取：不存在 404 → 过期 410 → 密码 401 → 浏览数 +1 → 返回投影（不含密码哈希）。"""
    share = store.get_share(share_id)
    if share is None:
        raise NotFoundError("Share not found")
    if share.is_expired():
        raise GoneError("Share has expired")

    if share.require_password:
        if not password:
            raise UnauthenticatedError("Password required")
        if not verify_password(password, share.password_hash):
            raise UnauthenticatedError("Invalid password")

    view_count = store.increment_view_count(share.id, share.view_count)

    return {
        "id": share.id,
        "docTitle": share.doc_title,
        "content": render_content(share, base_url),
        "requirePassword": share.require_password,
        "expireAt": iso_z(share.expire_at),
        "viewCount": view_count,
        "createdAt": iso_z(share.created_at),
    }
