"""
前端 SPA 静态资源：/api 之外的路径从 dist/ 目录返回文件，找不到则回退 index.html。
不做根路径或尾部斜杠的重定向。
"""

import mimetypes
import posixpath
from pathlib import Path
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from config.settings import settings

router = APIRouter(tags=["static"])

IMMUTABLE_CACHE = "public, max-age=31536000, immutable"
HTML_TYPE = "text/html; charset=utf-8"

_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"\x00asm", "application/wasm"),
)


def _sniff(data: bytes) -> str:
    for magic, content_type in _MAGIC:
        if data.startswith(magic):
            return content_type
    head = data[:512].lstrip().lower()
    if head.startswith((b"<!doctype html", b"<html")):
        return HTML_TYPE
    try:
        data[:512].decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _read_dist_file(target: str) -> Optional[bytes]:
    dist = Path(settings.static.dist_dir).resolve()
    path = (dist / target).resolve()
    if dist not in path.parents or not path.is_file():
        return None
    return path.read_bytes()


def _serve(target: str) -> Optional[Response]:
    target = target or "index.html"
    data = _read_dist_file(target)
    if data is None:
        return None

    ext = posixpath.splitext(target)[1].lower()
    if ext == ".html":
        return Response(content=data, media_type=HTML_TYPE, headers={"Cache-Control": "no-cache"})

    content_type = mimetypes.guess_type(target)[0] or _sniff(data)
    return Response(content=data, media_type=content_type, headers={"Cache-Control": IMMUTABLE_CACHE})


@router.api_route(
    "/{full_path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"],
    include_in_schema=False,
)
def spa(full_path: str) -> Response:
    request_path = "/" + full_path
    if request_path == "/api" or request_path.startswith("/api/"):
        return JSONResponse(status_code=404, content={"code": 1, "msg": "not found"})

    cleaned = posixpath.normpath(full_path) if full_path else ""
    if cleaned == ".":
        cleaned = ""
    if ".." in cleaned:
        return JSONResponse(status_code=400, content={"code": 1, "msg": "invalid path"})

    if "." in cleaned:
        response = _serve(cleaned)
        if response is not None:
            return response

    response = _serve("index.html")
    if response is None:
        return JSONResponse(status_code=404, content={"code": 1, "msg": "not found"})
    return response
