"""
业务异常：每种异常对应一个 HTTP 状态码，由 api.responses 统一渲染为 {code: 1, msg}。
"""

from __future__ import annotations


class ShareAPIError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class BadRequestError(ShareAPIError):
    status_code = 400


class UnauthenticatedError(ShareAPIError):
    status_code = 401


class NotFoundError(ShareAPIError):
    status_code = 404


class ConflictError(ShareAPIError):
    """唯一约束冲突（用户名 / 邮箱 / token 重复）。"""

    status_code = 409


class GoneError(ShareAPIError):
    status_code = 410


class StorageError(ShareAPIError):
    status_code = 500
