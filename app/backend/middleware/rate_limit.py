# app/backend/middleware/rate_limit.py
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from fastapi.responses import JSONResponse

from app.backend.core.errors import error_body

logger = logging.getLogger(__name__)


@dataclass
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_in: float


class RateLimiter:
    """Fixed-window counter per key (client address). In-process only."""

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateDecision:
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)
        self._prune(now)
        reset_in = max(0.0, self.window_seconds - (now - start))
        return RateDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_in=reset_in,
        )

    def _prune(self, now: float) -> None:
        if len(self._windows) < 10_000:
            return
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]


class RateLimitMiddleware:
    """
    Pure-ASGI rate limiter. ``rules`` is a list of (path prefix, limiter);
    the first matching prefix wins, unmatched paths are not limited.
    """

    def __init__(self, app, rules: Sequence[Tuple[str, RateLimiter]]) -> None:
        self.app = app
        self.rules = list(rules)

    def _limiter_for(self, path: str) -> Optional[RateLimiter]:
        for prefix, limiter in self.rules:
            if path == prefix.rstrip("/") or path.startswith(prefix):
                return limiter
        return None

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limiter = self._limiter_for(scope.get("path", ""))
        if limiter is None:
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        key = client[0] if client else "unknown"
        decision = limiter.hit(key)
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(math.ceil(decision.reset_in)),
        }

        if not decision.allowed:
            logger.warning("rate limit exceeded client=%s path=%s", key, scope.get("path"))
            headers["Retry-After"] = str(math.ceil(decision.reset_in))
            response = JSONResponse(
                status_code=429,
                content=error_body("Too many requests, please try again later."),
                headers=headers,
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                raw = list(message.get("headers", []))
                raw.extend((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())
                message["headers"] = raw
            await send(message)

        await self.app(scope, receive, send_with_headers)
