"""日志：get_logger(__name__) 取具名 logger，启动时 cleanup_logs() 清理旧运行文件。"""
from .log_manager import ACCESS_LOGGER, LogManager, cleanup_logs, get_logger, init_logging

__all__ = ["ACCESS_LOGGER", "LogManager", "cleanup_logs", "get_logger", "init_logging"]
