"""
Map Points API: Custom Exception Hierarchy
=============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"error": "<message>"}` bodies with the matching status code.
Who:   Raised by the validator, the store and middleware; caught by global handlers.
When:  During request processing when an expected failure occurs.

Exception Hierarchy:
    MapPointsError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found (no route matched)
    ├── PayloadTooLargeError     → 413 Payload Too Large
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── PersistenceError         → 500 Internal Server Error (generic body)

Each operation raises exactly one of these types; anything else reaching
the top level is an unhandled fault and becomes a generic 500.
"""

from typing import Any, Dict, Optional


class MapPointsError(Exception):
    """
    Base exception for all Map Points application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MapPointsError):
    """
    Raised when client input fails a required-field, type or length rule.

    HTTP:    400 Bad Request
    Logging: WARNING only; a rejected draft is an expected outcome, not a fault.

    Example response:
        {"error": "title must not exceed 100 characters"}
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(MapPointsError):
    """
    Raised when no handler matches the request method and path.

    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        message: str = "Route not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceError(MapPointsError):
    """
    Raised when the storage backend is unreachable, rejects a write, or a read fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always the generic "Server error".
        Driver errors, SQL and connection strings are only ever logged.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(MapPointsError):
    """
    Raised when a request body exceeds the configured size limit.

    HTTP:    413 Payload Too Large
    """

    status_code = 413

    def __init__(
        self,
        limit: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit"] = limit
        super().__init__(message="Payload too large", context=ctx)
        self.limit = limit


class RateLimitExceededError(MapPointsError):
    """
    Raised when a client exceeds the per-IP request quota for the current window.

    HTTP:    429 Too Many Requests
    Response includes a Retry-After header with the seconds left in the window.
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message="Too many requests, please try again later.",
            context=ctx,
        )
        self.retry_after = retry_after
