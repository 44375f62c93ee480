"""
Process-wide SQLAlchemy engine for the share store.

The URL comes from ``settings.storage`` (``SHARE_DATABASE_URL`` or
``<DATA_DIR>/siyuan-share.db``). ``share_api.db.store`` opens one short
session per operation against ``get_engine()``.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from config.settings import settings

_engine: Engine | None = None

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=30000",
    "PRAGMA foreign_keys=ON",
)


def ensure_data_dir() -> Path:
    """Create DATA_DIR (mode 0755) if missing; raises OSError when it cannot be created."""
    data_dir = Path(settings.data_dir)
    os.makedirs(data_dir, mode=0o755, exist_ok=True)
    return data_dir


def _is_memory(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _build_engine(raw_url: str) -> Engine:
    url = make_url(raw_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=False, pool_pre_ping=True)

    if _is_memory(url):
        # one shared connection, otherwise every session sees an empty database
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        pragmas = SQLITE_PRAGMAS[2:]
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
            pool_pre_ping=True,
        )
        pragmas = SQLITE_PRAGMAS

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        for pragma in pragmas:
            cursor.execute(pragma)
        cursor.close()

    return engine


def get_engine() -> Engine:
    """Singleton engine, built on first use from the current settings."""
    global _engine
    if _engine is None:
        _engine = _build_engine(settings.storage.db_url)
    return _engine


def init_db() -> None:
    """
    Create missing tables. Alembic owns schema changes on deployed databases;
    this covers fresh installs and tests.
    """
    from share_api.db import models as _models  # noqa: F401 - register tables
    SQLModel.metadata.create_all(get_engine())


def dispose_engine() -> None:
    """Close pooled connections and forget the engine (shutdown / tests)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
