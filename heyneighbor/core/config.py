"""
Configuration helpers for the HeyNeighbor backend.

Routers and services receive a Settings instance instead of reading
os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    public_base_url: str
    allowed_email_domains: tuple[str, ...]
    verification_code_ttl_seconds: int
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    log_level: str
    verify_rate_limit: int
    verify_rate_window_seconds: int
    trusted_proxies: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _domains(value: str | None) -> tuple[str, ...]:
        items = (part.strip().lower().lstrip("@") for part in (value or "").split(","))
        return tuple(item for item in items if item)

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", ""),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/"),
        allowed_email_domains=_domains(os.getenv("ALLOWED_EMAIL_DOMAINS", "calvin.edu")),
        verification_code_ttl_seconds=_int(os.getenv("VERIFICATION_CODE_TTL_SECONDS", "900"), 900),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        verify_rate_limit=_int(os.getenv("VERIFY_RATE_LIMIT", "10"), 10),
        verify_rate_window_seconds=_int(os.getenv("VERIFY_RATE_WINDOW_SECONDS", "300"), 300),
        trusted_proxies=tuple(
            part.strip() for part in os.getenv("TRUSTED_PROXIES", "").split(",") if part.strip()
        ),
    )
