from __future__ import annotations

import threading
import time
from typing import Dict, Iterable, Tuple

from fastapi import HTTPException, Request


class RateLimiter:
    def __init__(self) -> None:
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        expired = [key for key, (_count, reset) in self._hits.items() if now > reset]
        for key in expired:
            del self._hits[key]

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        if limit <= 0:
            return
        now = time.time()
        with self._lock:
            self._prune(now)
            count, reset = self._hits.get(key, (0, now + window_seconds))
            count += 1
            self._hits[key] = (count, reset)
            if count > limit:
                raise HTTPException(429, "Too many requests. Try again shortly.")

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """Peer address; X-Forwarded-For is honoured only when the peer is a configured proxy."""
    peer = request.client.host if request.client and request.client.host else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and peer in set(trusted_proxies):
        return forwarded.split(",")[0].strip() or peer
    return peer


def rate_limit_key(request: Request, key: str, *, limit: int, window_seconds: int) -> None:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    limiter.check(key, limit, window_seconds)


def rate_limit_ip(
    request: Request,
    scope: str,
    *,
    limit: int,
    window_seconds: int,
    trusted_proxies: Iterable[str] = (),
) -> None:
    key = f"{scope}:{client_ip(request, trusted_proxies)}"
    rate_limit_key(request, key, limit=limit, window_seconds=window_seconds)
