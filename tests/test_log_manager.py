"""
LogManager：分文件、级别覆盖、旧文件清理。直接构造实例，不影响全局 manager。
"""

import logging
import os
import time
import uuid

import pytest

from share_api.log import ACCESS_LOGGER, LogManager


@pytest.fixture
def log_dir(tmp_path):
    # 与 conftest 的 data/ 目录分开，iterdir 只看到日志文件
    path = tmp_path / "logs"
    path.mkdir()
    return path


def _unique(name: str) -> str:
    # logging.getLogger 全局缓存，测试间用不同名字
    return f"{name}.{uuid.uuid4().hex[:8]}"


def test_app_and_access_files_are_separate(log_dir, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    mgr = LogManager({"log_dir": str(log_dir), "console_output": False})
    app_logger = mgr.get_logger(_unique("share_api.test"))
    app_logger.info("app line")

    # 访问日志 logger 名字固定，先清掉可能存在的 handler
    access = logging.getLogger(ACCESS_LOGGER)
    saved = access.handlers[:]
    access.handlers.clear()
    try:
        mgr.get_logger(ACCESS_LOGGER).info("GET /api/health -> 200")
        for h in access.handlers:
            h.flush()
    finally:
        for h in access.handlers:
            h.close()
        access.handlers[:] = saved

    for h in app_logger.handlers:
        h.flush()
    names = sorted(p.name for p in log_dir.iterdir())
    assert len(names) == 2
    access_file = next(p for p in log_dir.iterdir() if p.name.startswith("access_"))
    app_file = next(p for p in log_dir.iterdir() if not p.name.startswith("access_"))
    assert "GET /api/health" in access_file.read_text(encoding="utf-8")
    app_text = app_file.read_text(encoding="utf-8")
    assert "app line" in app_text
    assert "GET /api/health" not in app_text
    assert " | INFO | " in app_text


def test_level_overrides(tmp_path, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    mgr = LogManager({
        "log_dir": str(tmp_path),
        "file_output": False,
        "console_output": False,
        "level": "warning",
        "levels": {"share_api.db": "DEBUG", "share_api.db.store": "ERROR"},
    })
    assert mgr._level_for("share_api.api.server") == logging.WARNING
    assert mgr._level_for("share_api.db.engine") == logging.DEBUG
    assert mgr._level_for("share_api.db.store") == logging.ERROR
    assert mgr._level_for("share_api.dbx") == logging.WARNING

    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    assert LogManager({"level": "ERROR", "file_output": False}).level == logging.DEBUG


def test_no_output_uses_null_handler(tmp_path):
    mgr = LogManager({"log_dir": str(tmp_path / "logs"), "file_output": False, "console_output": False})
    logger = mgr.get_logger(_unique("share_api.quiet"))
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]
    assert not (tmp_path / "logs").exists()


def _old_file(path, size, age_days):
    path.write_bytes(b"x" * size)
    ts = time.time() - age_days * 86400
    os.utime(path, (ts, ts))


def test_cleanup_keeps_small_dirs(log_dir):
    _old_file(log_dir / "old.log", 10, age_days=90)
    mgr = LogManager({"log_dir": str(log_dir), "min_keep_mb": 1})
    report = mgr.cleanup()
    assert report["deleted_by_age"] == [] and report["deleted_by_size"] == []
    assert (log_dir / "old.log").exists()


def test_cleanup_by_age_then_size(log_dir):
    mb = 1024 * 1024
    _old_file(log_dir / "a.log", mb, age_days=60)
    _old_file(log_dir / "b.log", mb, age_days=3)
    _old_file(log_dir / "c.log", mb, age_days=2)
    _old_file(log_dir / "d.log", mb, age_days=1)
    (log_dir / "notes.txt").write_text("not a log")

    mgr = LogManager({
        "log_dir": str(log_dir),
        "min_keep_mb": 0,
        "max_age_days": 30,
        "max_size_mb": 2,
        "console_output": False,
    })
    report = mgr.cleanup()
    assert report["deleted_by_age"] == ["a.log"]
    assert report["deleted_by_size"] == ["b.log"]
    assert report["remaining_mb"] == 2
    assert sorted(p.name for p in log_dir.iterdir()) == ["c.log", "d.log", "notes.txt"]


def test_cleanup_skips_current_run_file(log_dir):
    mgr = LogManager({"log_dir": str(log_dir), "min_keep_mb": 0, "max_size_mb": 0, "console_output": False})
    logger = mgr.get_logger(_unique("share_api.current"))
    logger.info("still writing")
    mgr.cleanup()
    assert any(p.suffix == ".log" for p in log_dir.iterdir())
    for h in logger.handlers:
        h.close()
