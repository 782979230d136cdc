"""Fixed-window, per-client throttling for the public code endpoints."""
from __future__ import annotations

import math
import threading
import time
from typing import Dict, Tuple

from fastapi import HTTPException, Request

_PRUNE_EVERY = 1024


class _RateLimiter:
    """Counts hits per key inside a window; keys are dropped once their window ends."""

    def __init__(self) -> None:
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._checks = 0

    def _prune(self, now: float) -> None:
        expired = [key for key, (_, reset) in self._hits.items() if reset < now]
        for key in expired:
            del self._hits[key]

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        now = time.monotonic()
        with self._lock:
            self._checks += 1
            if self._checks % _PRUNE_EVERY == 0:
                self._prune(now)
            count, reset = self._hits.get(key, (0, now + window_seconds))
            if now > reset:
                count = 0
                reset = now + window_seconds
            count += 1
            self._hits[key] = (count, reset)
            retry_after = reset - now
        if count > limit:
            raise HTTPException(
                429,
                "Too many signup code attempts. Try again shortly.",
                headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
            )

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._checks = 0


_limiter = _RateLimiter()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    """Raise HTTP 429 once ``limit`` hits from one client land inside the window."""
    _limiter.check(f"{scope}:{_client_ip(request)}", limit, window_seconds)


def reset_rate_limits() -> None:
    _limiter.reset()
