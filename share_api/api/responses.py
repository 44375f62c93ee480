"""
统一响应封装与异常处理：{code, msg, data}，code=0 表示成功。
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from share_api.api.schemas import Envelope
from share_api.errors import ShareAPIError
from share_api.log import get_logger

logger = get_logger(__name__)


def ok(data: Any = None) -> dict:
    return Envelope(code=0, msg="success", data=data).model_dump(exclude_none=True)


def error_response(status_code: int, msg: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": 1, "msg": msg})


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShareAPIError)
    async def _share_api_error(request: Request, exc: ShareAPIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, _format_validation_error(exc))
