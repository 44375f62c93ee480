"""
日志管理：应用日志与访问日志分文件、每次启动一组运行文件、按大小/时间清理旧文件。

  logs/app/<启动时间>.log          应用日志（share_api.*）
  logs/app/access_<启动时间>.log   访问日志（share_api.access，开启 access_file 时）
"""
import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

DEFAULT_LEVEL = "INFO"
DEFAULT_MAX_SIZE_MB = 100
DEFAULT_MAX_AGE_DAYS = 30
DEFAULT_MIN_KEEP_MB = 20
LOG_DIR_NAME = "app"
ACCESS_LOGGER = "share_api.access"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "share_config.json"

_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _to_level(name: Any, default: int = logging.INFO) -> int:
    if isinstance(name, int):
        return name
    return getattr(logging, str(name or "").upper(), default)


class LogManager:
    """
    具名 logger 工厂。每个 logger 只挂一次 handler，不向 root 传播。

    清理规则：运行文件总量低于 min_keep_mb 不动；先删超过 max_age_days 的，
    再从最旧开始删到 max_size_mb 以内。本次启动正在写的文件不参与清理。
    """

    def __init__(self, config: dict[str, Any] | None = None):
        config = config or {}
        self.log_dir = Path(config["log_dir"]) if config.get("log_dir") else _PROJECT_ROOT / "logs" / LOG_DIR_NAME
        self.max_size_mb = int(config.get("max_size_mb", DEFAULT_MAX_SIZE_MB))
        self.max_age_days = int(config.get("max_age_days", DEFAULT_MAX_AGE_DAYS))
        self.min_keep_mb = int(config.get("min_keep_mb", DEFAULT_MIN_KEEP_MB))
        self.console_output = bool(config.get("console_output", True))
        self.file_output = bool(config.get("file_output", True))
        self.access_file = bool(config.get("access_file", True))

        self.level = _to_level(os.getenv("LOG_LEVEL") or config.get("level") or DEFAULT_LEVEL)
        # 前缀 → 级别，最长前缀优先
        self.levels = {
            prefix: _to_level(lvl, self.level)
            for prefix, lvl in (config.get("levels") or {}).items()
        }

        self._started = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self._open_files: set[Path] = set()
        self._formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    def _level_for(self, name: str) -> int:
        best, best_len = self.level, -1
        for prefix, lvl in self.levels.items():
            if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > best_len:
                best, best_len = lvl, len(prefix)
        return best

    def _file_for(self, name: str) -> Path:
        if name == ACCESS_LOGGER and self.access_file:
            path = self.log_dir / f"access_{self._started}.log"
        else:
            path = self.log_dir / f"{self._started}.log"
        self._open_files.add(path)
        return path

    def get_logger(self, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        if logger.handlers:
            return logger

        level = self._level_for(name)
        logger.setLevel(level)
        logger.propagate = False

        handlers: list[logging.Handler] = []
        if self.console_output:
            handlers.append(logging.StreamHandler())
        if self.file_output:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self._file_for(name), encoding="utf-8"))
        if not handlers:
            handlers.append(logging.NullHandler())

        for h in handlers:
            h.setLevel(level)
            h.setFormatter(self._formatter)
            logger.addHandler(h)
        return logger

    def cleanup(self) -> dict[str, Any]:
        report: dict[str, Any] = {"deleted_by_age": [], "deleted_by_size": [], "remaining_mb": 0.0}
        if not self.log_dir.exists():
            return report

        candidates = [
            f for f in self.log_dir.iterdir()
            if f.is_file() and f.suffix == ".log" and f not in self._open_files
        ]
        candidates.sort(key=lambda p: p.stat().st_mtime)
        sizes = {f: f.stat().st_size for f in candidates}
        mb = 1024 * 1024

        if sum(sizes.values()) < self.min_keep_mb * mb:
            report["remaining_mb"] = sum(sizes.values()) / mb
            return report

        cutoff = (datetime.now() - timedelta(days=self.max_age_days)).timestamp()
        kept: list[Path] = []
        for f in candidates:
            if f.stat().st_mtime < cutoff:
                f.unlink()
                report["deleted_by_age"].append(f.name)
            else:
                kept.append(f)

        total = sum(sizes[f] for f in kept)
        while kept and total > self.max_size_mb * mb:
            oldest = kept.pop(0)
            total -= sizes[oldest]
            oldest.unlink()
            report["deleted_by_size"].append(oldest.name)

        report["remaining_mb"] = total / mb
        return report


_manager: LogManager | None = None


def load_logging_config(path: Path = _DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """logging 段：share_config.json，再用 share_config.local.json 覆盖。"""
    cfg: dict[str, Any] = {}
    for p in (path, path.with_name(f"{path.stem}.local{path.suffix}")):
        if p.exists():
            cfg.update(json.loads(p.read_text(encoding="utf-8")).get("logging") or {})
    return cfg


def init_logging(config: dict[str, Any] | None = None, config_path: str | Path | None = None) -> LogManager:
    """(重新)初始化日志管理器；已创建的 logger 保留原 handler。"""
    global _manager
    if config is None:
        config = load_logging_config(Path(config_path) if config_path else _DEFAULT_CONFIG_PATH)
    _manager = LogManager(config)
    return _manager


def _get_manager() -> LogManager:
    return _manager if _manager is not None else init_logging()


def get_logger(name: str) -> logging.Logger:
    return _get_manager().get_logger(name)


def cleanup_logs() -> dict[str, Any]:
    return _get_manager().cleanup()
