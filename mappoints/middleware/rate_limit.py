"""
Map Points API: Rate Limiting Middleware
===========================================

What:  Per-IP fixed window rate limiter for the /api/ routes.
How:   Each client IP owns a (window_start, count) pair. The first request
       after a window expires opens a new window; once count reaches the
       limit, further requests in that window get 429 until it resets.
When:  Before body parsing and routing, so rejected requests cost almost nothing.

Defaults (from settings): 100 requests per 900 seconds (15 minutes).

Headers on every limited path:
    X-RateLimit-Limit:     window quota
    X-RateLimit-Remaining: requests left in the current window
    X-RateLimit-Reset:     epoch seconds when the window resets
    Retry-After:           seconds to wait (429 responses only)

State is in memory and per process; behind several workers each one counts
separately.
"""

import logging
import math
import time
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from mappoints.config import settings
from mappoints.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

# Sweep expired windows once the table grows past this many client IPs
CLEANUP_THRESHOLD = 10_000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory fixed window limiter.

    Args:
        max_requests: Requests allowed per window (default settings.rate_limit_requests)
        window_seconds: Window length (default settings.rate_limit_window)
        path_prefix: Only paths starting with this are limited
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        path_prefix: str = "/api/",
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self.path_prefix = path_prefix
        # client IP → (window start epoch seconds, requests seen in window)
        self._windows: Dict[str, Tuple[float, int]] = {}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        # Behind a proxy this is the proxy's address unless uvicorn
        # is started with --proxy-headers
        client_ip = request.client.host if request.client else "unknown"

        now = time.time()
        window_start, count = self._windows.get(client_ip, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        reset_at = window_start + self.window_seconds

        if count >= self.max_requests:
            exc = RateLimitExceededError(retry_after=max(1, math.ceil(reset_at - now)))
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                count,
                self.window_seconds,
            )
            response: Response = JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.message},
                headers={"Retry-After": str(exc.retry_after)},
            )
            self._apply_headers(response, 0, reset_at)
            return response

        count += 1
        self._windows[client_ip] = (window_start, count)

        if len(self._windows) > CLEANUP_THRESHOLD:
            self._cleanup_expired(now)

        response = await call_next(request)
        self._apply_headers(response, self.max_requests - count, reset_at)
        return response

    def _apply_headers(self, response: Response, remaining: int, reset_at: float) -> None:
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(max(0, remaining))
        response.headers["X-RateLimit-Reset"] = str(math.ceil(reset_at))

    def _cleanup_expired(self, now: float) -> None:
        """Drop clients whose window has already ended."""
        expired = [
            ip for ip, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for ip in expired:
            del self._windows[ip]

        if expired:
            logger.debug("Cleaned up %d expired rate limit windows", len(expired))
