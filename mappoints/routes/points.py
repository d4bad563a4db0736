"""
Map Points API: Points Route Handlers
========================================

What:  Handles GET /api/points (list) and POST /api/points (create).
How:   Reads the body, runs the validator, delegates to PointStore, returns JSON.
       Failures are raised as typed exceptions and turned into responses by
       the global handlers in main.py.

Request bodies:
    application/json                    → decoded object
    application/x-www-form-urlencoded,
    multipart/form-data                 → form fields (values arrive as strings)
    empty body                          → {}

The body is read in chunks and counted, so a chunked upload without a
Content-Length still gets 413 once it passes settings.max_body_size.
"""

import json
import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mappoints.config import settings
from mappoints.database import get_db_session
from mappoints.exceptions import PayloadTooLargeError, ValidationError
from mappoints.models.point import Point
from mappoints.schemas.point import ErrorResponse, PointResponse
from mappoints.services.point_store import MAX_LIST_LIMIT, point_store
from mappoints.services.point_validator import validate_point_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Points"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_limited_body(request: Request, max_body_size: int) -> bytes:
    """
    Read the whole body, failing as soon as it grows past max_body_size.

    Raises:
        PayloadTooLargeError: more than max_body_size bytes were received
    """
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_body_size:
            raise PayloadTooLargeError(
                limit=max_body_size, context={"received_at_least": received}
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def read_payload(request: Request) -> Any:
    """Decode the request body as JSON or form fields."""
    content_type = request.headers.get("content-type", "")
    body = await read_limited_body(request, settings.max_body_size)

    if content_type.startswith(FORM_CONTENT_TYPES):
        async def replay() -> dict:
            return {"type": "http.request", "body": body, "more_body": False}

        form = await Request(request.scope, replay).form()
        return dict(form)

    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON body", context={"content_type": content_type})


@router.get(
    "/points",
    response_model=List[PointResponse],
    responses={
        200: {"description": "Stored points, newest first (max 1000)"},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="List points",
)
async def list_points(db: AsyncSession = Depends(get_db_session)) -> List[Point]:
    """Return the most recent points, newest first."""
    return await point_store.list_points(db, limit=MAX_LIST_LIMIT)


@router.post(
    "/points",
    response_model=PointResponse,
    status_code=201,
    responses={
        201: {"description": "The created point, with id and createdAt"},
        400: {"description": "Invalid input", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Create a point",
    description=(
        "Body: {lat, lng, title, description?, userId?}. lat, lng and title are "
        "required; title max 100 characters, description max 500."
    ),
)
async def create_point(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Point:
    """
    Validate the body and store a new point.

    Validation runs to completion before the store is touched, so a
    rejected draft never produces a partial write.
    """
    payload = await read_payload(request)
    draft = validate_point_payload(
        payload, enforce_range=settings.enforce_coordinate_range
    )
    return await point_store.create(db, draft)
