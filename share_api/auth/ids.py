"""Opaque identifiers and hex secrets, all drawn from the OS CSPRNG."""

import secrets

USER_ID_PREFIX = "user_"


def hex_token(nbytes: int) -> str:
    """Return ``2 * nbytes`` lowercase hex chars over ``nbytes`` random bytes."""
    if nbytes <= 0:
        raise ValueError("nbytes must be positive")
    return secrets.token_hex(nbytes)


def share_id() -> str:
    return hex_token(16)


def user_id() -> str:
    return USER_ID_PREFIX + hex_token(16)


def api_token() -> str:
    return hex_token(32)


def bootstrap_token() -> str:
    return hex_token(32)


def bootstrap_token_id() -> str:
    return hex_token(16)
