"""
Map Points API: Request Body Size Middleware
===============================================

What:  Rejects requests whose declared body is larger than settings.max_body_size.
How:   Compares the Content-Length header against the limit and answers 413
       before the body is read. Default limit is 10MB. Bodies sent without a
       Content-Length (chunked) are counted as they are read by
       routes.points.read_limited_body.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from mappoints.config import settings
from mappoints.exceptions import PayloadTooLargeError

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """413 for any request that declares a body above the limit."""

    def __init__(self, app: ASGIApp, max_body_size: Optional[int] = None):
        super().__init__(app)
        self.max_body_size = max_body_size or settings.max_body_size

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            exc = PayloadTooLargeError(limit=self.max_body_size)
            logger.warning(
                "Rejected %s %s: body of %s bytes exceeds %d",
                request.method,
                request.url.path,
                content_length,
                self.max_body_size,
            )
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

        return await call_next(request)
