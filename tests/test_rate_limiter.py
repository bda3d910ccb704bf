from __future__ import annotations

import pytest
from fastapi import HTTPException

from heyneighbor.core import rate_limiter as rate_limiter_module
from heyneighbor.core.rate_limiter import RateLimiter


class FakeTime:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def fake_time(monkeypatch):
    fake = FakeTime()
    monkeypatch.setattr(rate_limiter_module.time, "time", fake)
    return fake


def test_limit_is_enforced_within_the_window(fake_time):
    limiter = RateLimiter()
    for _ in range(3):
        limiter.check("auth:verify:1.2.3.4", limit=3, window_seconds=60)
    with pytest.raises(HTTPException) as err:
        limiter.check("auth:verify:1.2.3.4", limit=3, window_seconds=60)
    assert err.value.status_code == 429

    fake_time.now += 61
    limiter.check("auth:verify:1.2.3.4", limit=3, window_seconds=60)


def test_expired_windows_are_dropped(fake_time):
    limiter = RateLimiter()
    for i in range(500):
        limiter.check(f"auth:verify:10.0.{i // 256}.{i % 256}", limit=5, window_seconds=60)
    assert len(limiter) == 500

    fake_time.now += 61
    limiter.check("auth:verify:192.0.2.1", limit=5, window_seconds=60)
    assert len(limiter) == 1


def test_zero_limit_disables_checks(fake_time):
    limiter = RateLimiter()
    for _ in range(20):
        limiter.check("auth:resend:1.2.3.4", limit=0, window_seconds=60)
    assert len(limiter) == 0
