"""
Share access passwords: trimming, length policy and bcrypt hashing.

Only the hash is stored. bcrypt reads at most 72 bytes, so longer
passwords are refused instead of being silently truncated.
"""

import bcrypt

BCRYPT_MAX_BYTES = 72


def normalize_password(raw) -> str:
    return (raw or "").strip()


def check_password_length(password: str, min_length: int) -> None:
    if len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("password cannot be empty")
    data = plain.encode("utf-8")
    if len(data) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password longer than {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(data, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Malformed or empty hashes never match."""
    if not plain or not hashed:
        return False
    data = plain.encode("utf-8")
    if len(data) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(data, hashed.encode("utf-8"))
    except ValueError:
        return False
