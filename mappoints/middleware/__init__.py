# Middleware package init
"""
Map Points API: Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [Body Limit]
            → [Security Headers] → [GZip] → [CORS] → [Unhandled Error]
            → Route Handler

    - Request ID first, so every log line and error can be correlated
    - Logging next, so rejected (429/413) requests still get an access line
    - Rate limit and body limit reject before any parsing or storage work
    - Unhandled Error innermost, so a faulted 500 still gets every header
      and an access line
"""
