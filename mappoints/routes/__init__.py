# Routes package init
"""
Map Points API: API Routes Package
=====================================

Route Inventory:
    - points.py:  GET  /api/points   (list, newest first, max 1000)
                  POST /api/points   (validate and create)
    - health.py:  GET  /api/health   (status, timestamp, point count)

Routes stay thin: read the request, call the validator/store, return the
result. Status codes for failures come from the exception handlers in main.py.
"""
