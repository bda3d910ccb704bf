from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Make the heyneighbor package importable for local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from heyneighbor.core import config as core_config  # noqa: E402
from heyneighbor.db.session import Database  # noqa: E402
from heyneighbor.repositories.sql_repository import SQLRepository  # noqa: E402

ALLOWED_DOMAIN = "allowed.example"


class FrozenClock:
    """Server clock that only moves when a test advances it."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSender:
    """Notification sender recording every code it was asked to deliver."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient_email: str, code: str, display_name: str) -> bool:
        self.sent.append((recipient_email, code, display_name))
        return not self.fail

    def last_code(self, email: str) -> str:
        for recipient, code, _name in reversed(self.sent):
            if recipient == email:
                return code
        raise AssertionError(f"no code sent to {email}")


@pytest.fixture()
def settings(monkeypatch):
    """Settings with a known allowed domain and a 15 minute code window."""
    monkeypatch.setenv("ALLOWED_EMAIL_DOMAINS", ALLOWED_DOMAIN)
    monkeypatch.setenv("VERIFICATION_CODE_TTL_SECONDS", "900")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://testserver")
    core_config.get_settings.cache_clear()
    yield core_config.get_settings()
    core_config.get_settings.cache_clear()


@pytest.fixture()
def database(tmp_path):
    """Temporary SQLite store, fully disposed so the file is not left locked."""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_all()
    yield db
    try:
        db.drop_all()
    finally:
        db.dispose()


@pytest.fixture()
def repository(database):
    return SQLRepository(database)


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def sender():
    return FakeSender()
