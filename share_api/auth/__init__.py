# Auth: id/secret mint, password hashing, bearer resolution, bootstrap protocol
from share_api.auth.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
]
