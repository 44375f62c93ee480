"""Externally visible base URL for links embedded in responses."""

from typing import Mapping, Optional


def resolve_base_url(headers: Mapping[str, str], scheme: str = "http", host: Optional[str] = None) -> str:
    """
    Precedence: ``X-Base-URL`` → ``X-Forwarded-Proto``/``X-Forwarded-Host`` →
    request scheme and ``Host``. The result never ends with ``/``.
    """
    base_url = headers.get("x-base-url") or ""
    if not base_url:
        proto = headers.get("x-forwarded-proto") or ("https" if scheme == "https" else "http")
        fwd_host = headers.get("x-forwarded-host") or host or headers.get("host") or ""
        base_url = f"{proto}://{fwd_host.rstrip('/')}"
    return base_url.rstrip("/")


def share_url(base_url: str, share_id: str) -> str:
    return f"{base_url.rstrip('/')}/s/{share_id}"
