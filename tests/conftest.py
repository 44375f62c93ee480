"""
共享 Fixtures：隔离的 DATA_DIR、每个测试一套新数据库、TestClient、测试用户。
"""

from datetime import datetime

import pytest
from sqlalchemy import update
from sqlmodel import Session

from share_api.log import init_logging

# 测试期间只走 NullHandler，不写 logs/app
init_logging({"console_output": False, "file_output": False})

from config.settings import settings  # noqa: E402
from share_api.db import engine as db_engine  # noqa: E402
from share_api.db import store  # noqa: E402
from share_api.db.models import Share  # noqa: E402


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """每个测试使用 tmp_path 下独立的 DATA_DIR 和 SQLite 文件"""
    path = tmp_path / "data"
    monkeypatch.setattr(settings.storage, "data_dir", path)
    monkeypatch.setattr(settings.storage, "database_url", None)
    db_engine.dispose_engine()
    db_engine.ensure_data_dir()
    db_engine.init_db()
    yield path
    db_engine.dispose_engine()


@pytest.fixture
def client(data_dir):
    from fastapi.testclient import TestClient
    from share_api.api.server import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice():
    return store.create_user("alice", "alice@example.com")


@pytest.fixture
def auth_headers(alice):
    return {"Authorization": f"Bearer {alice.api_token}"}


@pytest.fixture
def set_expire_at():
    """直接改写 expire_at，用于模拟过期"""

    def _set(share_id: str, value: datetime) -> None:
        with Session(db_engine.get_engine()) as session:
            session.execute(update(Share).where(Share.id == share_id).values(expire_at=value))
            session.commit()

    return _set
