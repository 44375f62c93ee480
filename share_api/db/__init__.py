"""
share_api.db: engine, SQLModel tables and the store.

Usage:
    from share_api.db import ensure_data_dir, init_db
    from share_api.db import store
"""

from share_api.db.engine import dispose_engine, ensure_data_dir, get_engine, init_db

__all__ = ["dispose_engine", "ensure_data_dir", "get_engine", "init_db"]
