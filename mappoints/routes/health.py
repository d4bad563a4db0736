"""
Map Points API: Health Check Route
=====================================

What:  GET /api/health liveness probe.
How:   Counts stored points; a successful count proves the database answers.
Who:   Load balancers, container health checks, monitoring.

Responses:
    200 {"status": "OK", "timestamp": "<ISO 8601>", "pointsCount": <int>}
    500 {"error": "Server error"} when the count fails
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mappoints.database import get_db_session
from mappoints.schemas.point import ErrorResponse, HealthResponse
from mappoints.services.point_store import point_store

router = APIRouter(prefix="/api", tags=["Health"])


def utc_timestamp() -> str:
    """Current UTC time like 2024-01-15T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={500: {"description": "Storage error", "model": ErrorResponse}},
    summary="Service health check",
)
async def health_check(db: AsyncSession = Depends(get_db_session)) -> HealthResponse:
    count = await point_store.count(db)
    return HealthResponse(status="OK", timestamp=utc_timestamp(), points_count=count)
