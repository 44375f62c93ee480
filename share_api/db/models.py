"""
SQLModel table definitions: users, shares, bootstrap_tokens.

  - All timestamps are naive UTC ``DateTime`` columns; ``iso_z`` renders
    them for JSON.
  - Rows are soft-deleted through ``deleted_at``; the store filters
    ``deleted_at IS NULL`` on every read.
  - ``Share.references`` stays TEXT holding a JSON list of block
    references, decoded on read.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso_z(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


# ──────────────────────────────────────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────────────────────────────────────

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True, max_length=64)
    username: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    api_token: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, server_default="1"))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True, index=True))

    def to_profile(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "isActive": self.is_active,
            "createdAt": iso_z(self.created_at),
        }


# ──────────────────────────────────────────────────────────────────────────────
# Shares
# ──────────────────────────────────────────────────────────────────────────────

class Share(SQLModel, table=True):
    __tablename__ = "shares"
    __table_args__ = (
        Index("idx_shares_user_doc", "user_id", "doc_id"),
    )

    id: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    doc_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    doc_title: str = Field(default="", sa_column=Column(String(255), nullable=False, server_default=""))
    content: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    references: Optional[str] = Field(default=None, sa_column=Column("references", Text, nullable=True))
    parent_share_id: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    require_password: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="0"))
    password_hash: str = Field(default="", sa_column=Column(String(255), nullable=False, server_default=""))
    expire_at: datetime = Field(sa_column=Column(DateTime, nullable=False, index=True))
    is_public: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, server_default="1"))
    view_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True, index=True))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Strictly after ``expire_at``; a read at exactly ``expire_at`` is still valid."""
        return (now or utc_now()) > self.expire_at

    def get_references(self) -> Optional[List[Dict[str, Any]]]:
        """Decoded reference list, or None when absent or not a JSON list."""
        if not self.references:
            return None
        try:
            data = json.loads(self.references)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, list):
            return None
        return data

    def set_references(self, refs: Optional[List[Dict[str, Any]]]) -> None:
        self.references = json.dumps(refs, ensure_ascii=False) if refs else None


# ──────────────────────────────────────────────────────────────────────────────
# Bootstrap tokens
# ──────────────────────────────────────────────────────────────────────────────

class BootstrapToken(SQLModel, table=True):
    __tablename__ = "bootstrap_tokens"

    id: str = Field(primary_key=True, max_length=64)
    token: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="0"))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > self.expires_at
