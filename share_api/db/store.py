"""
Persistence operations for users, shares and bootstrap tokens.

Every function opens its own short session; nothing spans requests.
Soft-deleted rows (``deleted_at`` set) are invisible to every read here.
``IntegrityError`` surfaces as ``ConflictError``, any other SQLAlchemy
failure as ``StorageError``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from share_api.auth import ids
from share_api.db.engine import get_engine
from share_api.db.models import BootstrapToken, Share, User, utc_now
from share_api.errors import ConflictError, StorageError
from share_api.log import get_logger

logger = get_logger(__name__)


@contextmanager
def _session() -> Iterator[Session]:
    try:
        with Session(get_engine()) as session:
            yield session
    except IntegrityError as e:
        logger.warning("unique constraint violated: %s", e.orig)
        raise ConflictError("record already exists") from e
    except SQLAlchemyError as e:
        logger.error("storage failure: %s", e)
        raise StorageError(f"storage failure: {e.__class__.__name__}") from e


# ── Users ─────────────────────────────────────────────────────────────────────

def create_user(
    username: str,
    email: str,
    *,
    user_id: Optional[str] = None,
    api_token: Optional[str] = None,
) -> User:
    now = utc_now()
    with _session() as session:
        row = User(
            id=user_id or ids.user_id(),
            username=username,
            email=email,
            api_token=api_token or ids.api_token(),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
    return row


def get_user(user_id: str) -> Optional[User]:
    with _session() as session:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return session.exec(stmt).first()


def get_user_by_token(token: str) -> Optional[User]:
    """Active, non-deleted user owning *token*."""
    if not token:
        return None
    with _session() as session:
        stmt = select(User).where(
            User.api_token == token,
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        )
        return session.exec(stmt).first()


def count_users() -> int:
    with _session() as session:
        stmt = select(func.count()).select_from(User).where(User.deleted_at.is_(None))
        return int(session.exec(stmt).one())


def delete_user(user_id: str) -> bool:
    now = utc_now()
    with _session() as session:
        result = session.execute(
            update(User)
            .where(User.id == user_id, User.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        session.commit()
        return result.rowcount > 0


# ── Bootstrap tokens ──────────────────────────────────────────────────────────

def create_bootstrap_token(token: str, expires_at: datetime) -> BootstrapToken:
    now = utc_now()
    with _session() as session:
        row = BootstrapToken(
            id=ids.bootstrap_token_id(),
            token=token,
            expires_at=expires_at,
            used=False,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
    return row


def find_live_bootstrap_token(now: Optional[datetime] = None) -> Optional[BootstrapToken]:
    """Any unused token that has not expired yet."""
    now = now or utc_now()
    with _session() as session:
        stmt = (
            select(BootstrapToken)
            .where(BootstrapToken.used.is_(False), BootstrapToken.expires_at > now)
            .order_by(BootstrapToken.created_at.desc())
        )
        return session.exec(stmt).first()


def get_unused_bootstrap_token(token: str) -> Optional[BootstrapToken]:
    if not token:
        return None
    with _session() as session:
        stmt = select(BootstrapToken).where(
            BootstrapToken.token == token,
            BootstrapToken.used.is_(False),
        )
        return session.exec(stmt).first()


def mark_bootstrap_token_used(token_id: str) -> bool:
    """Flip ``used`` to true; a token that is already used stays untouched."""
    with _session() as session:
        result = session.execute(
            update(BootstrapToken)
            .where(BootstrapToken.id == token_id, BootstrapToken.used.is_(False))
            .values(used=True, updated_at=utc_now())
        )
        session.commit()
        return result.rowcount > 0


# ── Shares ────────────────────────────────────────────────────────────────────

def insert_share(share: Share) -> Share:
    now = utc_now()
    share.created_at = now
    share.updated_at = now
    with _session() as session:
        session.add(share)
        session.commit()
        session.refresh(share)
    return share


def update_share(share: Share) -> Share:
    """Write back every column of an existing (detached) share."""
    share.updated_at = utc_now()
    with _session() as session:
        merged = session.merge(share)
        session.commit()
        session.refresh(merged)
    return merged


def get_share(share_id: str) -> Optional[Share]:
    with _session() as session:
        stmt = select(Share).where(Share.id == share_id, Share.deleted_at.is_(None))
        return session.exec(stmt).first()


def find_active_share_by_doc(user_id: str, doc_id: str) -> Optional[Share]:
    """Newest non-deleted share for (user_id, doc_id). Expiry is not checked here."""
    with _session() as session:
        stmt = (
            select(Share)
            .where(
                Share.user_id == user_id,
                Share.doc_id == doc_id,
                Share.deleted_at.is_(None),
            )
            .order_by(Share.created_at.desc())
        )
        return session.exec(stmt).first()


def count_user_shares(user_id: str) -> int:
    with _session() as session:
        stmt = (
            select(func.count())
            .select_from(Share)
            .where(Share.user_id == user_id, Share.deleted_at.is_(None))
        )
        return int(session.exec(stmt).one())


def list_user_shares(user_id: str, offset: int = 0, limit: int = 10) -> List[Share]:
    with _session() as session:
        stmt = (
            select(Share)
            .where(Share.user_id == user_id, Share.deleted_at.is_(None))
            .order_by(Share.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(session.exec(stmt).all())


def increment_view_count(share_id: str, current: int) -> int:
    """Column-only write of ``current + 1``; other columns are left alone."""
    new_value = current + 1
    with _session() as session:
        session.execute(
            update(Share)
            .where(Share.id == share_id)
            .values(view_count=new_value)
        )
        session.commit()
    return new_value


def delete_share(share_id: str, user_id: str) -> bool:
    """Soft-delete one share owned by *user_id*. False when nothing matched."""
    now = utc_now()
    with _session() as session:
        result = session.execute(
            update(Share)
            .where(
                Share.id == share_id,
                Share.user_id == user_id,
                Share.deleted_at.is_(None),
            )
            .values(deleted_at=now, updated_at=now)
        )
        session.commit()
        return result.rowcount > 0


def delete_shares_by_user(user_id: str) -> int:
    now = utc_now()
    with _session() as session:
        result = session.execute(
            update(Share)
            .where(Share.user_id == user_id, Share.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        session.commit()
        return int(result.rowcount or 0)
