"""Domain helpers for member email validation."""
from __future__ import annotations

import re
from typing import Iterable

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: str | None) -> bool:
    """Return True when value looks like a single mailbox address."""
    if not value:
        return False
    return bool(EMAIL_PATTERN.fullmatch(value))


def email_domain(value: str) -> str:
    return value.rsplit("@", 1)[-1] if "@" in value else ""


def is_allowed_domain(value: str, allowed_domains: Iterable[str]) -> bool:
    """Check the address against the community's allowed domains (exact match)."""
    domain = email_domain(normalize_email(value))
    return bool(domain) and domain in {d.lower() for d in allowed_domains}
