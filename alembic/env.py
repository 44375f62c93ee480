from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine
from sqlmodel import SQLModel

from alembic import context

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

import share_api.db.models as _models  # noqa: F401, E402  users / shares / bootstrap_tokens

from config.settings import settings  # noqa: E402
from share_api.db.engine import ensure_data_dir, get_engine  # noqa: E402

target_metadata = SQLModel.metadata

# SQLite cannot ALTER columns in place; batch mode rebuilds the table.
_CONFIGURE_OPTS = {"render_as_batch": True, "compare_type": True}


def _ini_url() -> str:
    url = config.get_main_option("sqlalchemy.url", default="") or ""
    return "" if url.startswith("driver://") else url


def run_migrations_offline() -> None:
    context.configure(
        url=_ini_url() or settings.storage.db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """alembic.ini ``sqlalchemy.url`` wins; otherwise the service's own engine (DATA_DIR)."""
    override = _ini_url()
    if override:
        connectable = create_engine(override)
    else:
        ensure_data_dir()
        connectable = get_engine()

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **_CONFIGURE_OPTS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
