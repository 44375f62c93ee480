"""
Bearer-token authentication against ``users.api_token``.

Tokens are opaque 64-char hex strings minted by ``ids.api_token``; the
lookup is an indexed equality match, and only active, non-deleted users
resolve.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Optional

from share_api.db import store
from share_api.errors import UnauthenticatedError


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    username: str


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from ``Authorization: Bearer <token>``."""
    if not authorization:
        raise UnauthenticatedError("Authorization header required")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
        raise UnauthenticatedError("Invalid authorization header format")
    return parts[1].strip()


def authenticate(authorization: Optional[str]) -> CurrentUser:
    """Resolve the header to the owning user or raise ``UnauthenticatedError``."""
    token = parse_bearer(authorization)
    user = store.get_user_by_token(token)
    if user is None or not hmac.compare_digest(user.api_token, token):
        raise UnauthenticatedError("Invalid or inactive token")
    return CurrentUser(user_id=user.id, username=user.username)
