"""
Faxon Portal API — Rate Limiting Middleware
============================================

What:  Per-IP sliding window limiter with two budgets.
How:   Timestamps of recent requests are kept per (scope, IP):

    scope "auth":    paths under /api/auth/   → settings.auth_rate_limit_requests
    scope "default": everything else          → settings.rate_limit_requests

    Both share settings.rate_limit_window. A request over budget gets 429
    with Retry-After set to when its oldest counted request leaves the window.

Logout is never limited: the browser must always be able to end its session.
Sits inside RequestIDMiddleware, so a 429 carries the request id like any
other error envelope.

The state is in-process: with several workers each keeps its own counts.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from faxon_api.config import settings
from faxon_api.exceptions import RateLimitExceededError
from faxon_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

AUTH_PREFIX = "/api/auth/"

_CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window rate limiter."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc", "/api/auth/logout"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._seen = 0

    @staticmethod
    def _budget(path: str) -> Tuple[str, int]:
        if path.startswith(AUTH_PREFIX):
            return "auth", settings.auth_rate_limit_requests
        return "default", settings.rate_limit_requests

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        scope, limit = self._budget(path)
        key = (scope, client_ip)

        now = time.time()
        window = settings.rate_limit_window
        window_start = now - window

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= limit:
            retry_after = int(timestamps[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s (%s): %d requests in %ds window",
                client_ip,
                scope,
                len(timestamps),
                window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "request_id": request_id_var.get("") or getattr(request.state, "request_id", ""),
                    "details": exc.context,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % _CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)

        return await call_next(request)

    def _cleanup_inactive(self, window_start: float) -> None:
        """Drop (scope, IP) entries with nothing left in the window."""
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
