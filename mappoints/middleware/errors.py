"""
Map Points API: Unhandled Error Middleware
=============================================

What:  Turns any exception no handler claimed into 500 {"error": "Something went wrong!"}.
How:   Wraps call_next in a catch-all. The traceback is logged; the client
       only gets the generic body.
When:  Innermost application middleware. The response it builds still passes
       through CORS, security headers, rate limit headers, the access log and
       the request ID layer on the way out, like any other response.

Starlette installs an app-level `Exception` handler on ServerErrorMiddleware,
which sits outside every user middleware; main.py keeps one there only for
faults raised by the middleware layers themselves.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mappoints.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

UNHANDLED_ERROR_MESSAGE = "Something went wrong!"


def unhandled_error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": UNHANDLED_ERROR_MESSAGE})


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Last stop for exceptions escaping the routes and their handlers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "[%s] Unexpected error on %s %s: %s",
                request_id_var.get(""),
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return unhandled_error_response()
