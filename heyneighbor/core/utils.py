"""
Utility helpers shared across routers/services.
"""

from datetime import datetime, timezone
from typing import Optional

from .config import get_settings

UPLOAD_PREFIX = "user_"


def utcnow() -> datetime:
    """Server-side clock used for every expiry decision."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize naive datetimes (as returned by SQLite) to aware UTC."""
    if value is None:
        return None
    if value.tzinfo:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)


def absolute_url(path: str, base: Optional[str] = None) -> str:
    """
    Turn relative paths into absolute URLs using PUBLIC_BASE_URL.
    """
    base_url = (base or get_settings().public_base_url).rstrip("/")
    if not path:
        return base_url + "/"
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return base_url + path


def upload_url(filename: str | None, base: Optional[str] = None) -> str | None:
    """Expose stored upload filenames as absolute URLs; other values pass through."""
    if filename and filename.startswith(UPLOAD_PREFIX):
        return absolute_url(f"/uploads/{filename}", base)
    return filename
