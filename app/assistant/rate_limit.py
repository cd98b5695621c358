from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from app.domain.exceptions import RateLimitedError

# Prune expired windows once the table grows past this many client keys.
_PRUNE_THRESHOLD = 10_000


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    In-process, per-key fixed window limiter.

    Single-process only: counts are not shared between workers.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> int | None:
        """Record one request for `key`. Returns None if allowed, else Retry-After seconds."""

        now = self._clock()
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            if len(self._windows) >= _PRUNE_THRESHOLD:
                self._prune(now)
            self._windows[key] = _Window(count=1, reset_at=now + self._window_seconds)
            return None

        if window.count >= self._limit:
            return max(1, math.ceil(window.reset_at - now))

        window.count += 1
        return None

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]


def client_ip(request: Request) -> str:
    """Best-effort client address: proxy headers first, then the socket peer."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = (request.headers.get(header) or "").strip()
        if value:
            return value
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(request: Request) -> None:
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    retry_after = limiter.hit(client_ip(request))
    if retry_after is not None:
        raise RateLimitedError("Too many requests", retry_after_seconds=retry_after)
