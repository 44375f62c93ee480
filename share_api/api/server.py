"""
FastAPI 应用入口 - 分享服务 API
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from share_api import __version__
from share_api.api.middleware import CORSMiddleware, RequestLogMiddleware
from share_api.api.responses import ok, register_exception_handlers
from share_api.api.routes_auth import router as auth_router
from share_api.api.routes_share import router as share_router
from share_api.api.routes_view import router as view_router
from share_api.api.static import router as static_router
from share_api.auth.bootstrap import ensure_bootstrap_token
from share_api.db import dispose_engine, ensure_data_dir, init_db, store
from share_api.errors import ShareAPIError
from share_api.log import cleanup_logs, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：数据目录 → 建表 → 引导令牌 → 日志清理"""

    # 0. DATA_DIR 是唯一数据来源，无法创建时拒绝启动
    data_dir = ensure_data_dir()
    init_db()
    logger.info("[startup] database ready (data_dir=%s)", data_dir.resolve())

    # 1. 无用户时生成一次性引导令牌
    try:
        bt = ensure_bootstrap_token()
        if bt is not None:
            logger.info("[startup] bootstrap token available (expires %sZ)", bt.expires_at.isoformat())
    except (ShareAPIError, OSError) as e:
        logger.error("[startup] failed to ensure bootstrap token: %s", e)

    # 2. 旧日志清理
    try:
        report = cleanup_logs()
        if report["deleted_by_age"] or report["deleted_by_size"]:
            logger.info("[startup] log cleanup: %s", report)
    except OSError as e:
        logger.warning("[startup] log cleanup failed: %s", e)

    yield

    dispose_engine()


app = FastAPI(
    title="Siyuan Share API",
    description="笔记文档只读分享链接服务",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(RequestLogMiddleware)
app.add_middleware(CORSMiddleware)

register_exception_handlers(app)


@app.get("/api/health")
def health() -> dict:
    """存活检查 + 用户数 + 运行模式（公开）。"""
    return ok({
        "status": "ok",
        "ts": int(time.time()),
        "userCount": store.count_users(),
        "mode": settings.env,
        "version": settings.version,
    })


app.include_router(auth_router)
app.include_router(share_router)
app.include_router(view_router)
# 兜底路由，必须最后注册
app.include_router(static_router)
