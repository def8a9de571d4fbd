"""
API Middleware.

Request correlation and per-client rate limiting for the form API.
Every request gets a request ID (taken from ``X-Request-ID`` when the
caller sends one) that is bound into the logging context, so the parser's
own log lines carry it too.
"""

from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from voiceform.config import get_settings
from voiceform.logging_config import get_logger, trace_id_var, generate_trace_id

logger = get_logger(__name__)

# Probes that would otherwise flood the access log
_QUIET_PATHS = frozenset({"/health", "/"})


class SlidingWindowLimiter:
    """In-memory request log per client key. Per process only."""

    def __init__(self) -> None:
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = 0.0

    def check(self, key: str, now: float, window: float, limit: int) -> float:
        """
        Record a hit for ``key`` unless it is over ``limit`` within ``window``.

        Returns 0 when the hit was accepted, otherwise the seconds until the
        oldest hit leaves the window.
        """
        if now - self._last_sweep >= window:
            self._sweep(now, window)

        hits = self._hits[key]
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= limit:
            return max(window - (now - hits[0]), 0.001)

        hits.append(now)
        return 0.0

    def _sweep(self, now: float, window: float) -> None:
        """Forget clients with no hit inside the window."""
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= window]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._hits)


_limiter = SlidingWindowLimiter()


def reset_rate_limits() -> None:
    _limiter.reset()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to the logging context and echo it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_trace_id()
        trace_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(path=request.url.path)

        start = time.monotonic()
        response = await call_next(request)
        elapsed_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        log(
            "api_request",
            method=request.method,
            status=response.status_code,
            elapsed_ms=elapsed_ms,
            body_bytes=request.headers.get("content-length"),
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the configured requests per window."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        client_ip = request.client.host if request.client else "unknown"

        wait = _limiter.check(
            client_ip,
            time.monotonic(),
            settings.rate_limit_window_seconds,
            settings.rate_limit_max_requests,
        )
        if wait:
            logger.warning("rate_limit_exceeded", client_ip=client_ip, retry_after=wait)
            return Response(
                content='{"error": "Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(math.ceil(wait))},
            )

        return await call_next(request)
