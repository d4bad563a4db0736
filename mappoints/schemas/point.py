"""
Map Points API: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract and the validated draft.
How:   FastAPI serializes responses through these models (by alias, so the
       wire format is camelCase: createdAt, userId, pointsCount) and
       generates OpenAPI documentation from them.
Who:   Route handlers (responses), the validator (PointDraft), the store (input).
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Domain Models
# ══════════════════════════════════════════════════════════════════════════


class PointDraft(BaseModel):
    """
    A validated, not-yet-persisted point.

    Only produced by validate_point_payload(); every field is already
    coerced, trimmed and length-checked.
    """
    lat: float
    lng: float
    title: str
    description: str = ""
    user_id: str = "anonymous"

    model_config = ConfigDict(frozen=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models: What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class PointResponse(BaseModel):
    """
    Full representation of a stored point.

    Returned as array items by GET /api/points and on its own by POST /api/points.
    """
    id: uuid.UUID = Field(description="Unique point identifier (UUID)")
    lat: float = Field(description="Latitude")
    lng: float = Field(description="Longitude")
    title: str = Field(description="Point title (max 100 characters)")
    description: str = Field(description="Point description (max 500 characters, may be empty)")
    created_at: datetime = Field(description="When the point was stored (UTC ISO 8601)")
    user_id: str = Field(description="Submitter tag, 'anonymous' when not supplied")

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """SQLite hands back naive datetimes; every stored timestamp is UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class HealthResponse(BaseModel):
    """
    Liveness response for GET /api/health.

    Example:
        {"status": "OK", "timestamp": "2024-01-15T12:00:00.000Z", "pointsCount": 42}
    """
    status: str = Field(description="Always 'OK' when storage answered")
    timestamp: str = Field(description="Server time (UTC ISO 8601, milliseconds)")
    points_count: int = Field(description="Total number of stored points")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """
    Error body shared by every failure response.

    Example:
        {"error": "lat, lng and title are required"}
    """
    error: str = Field(description="Human-readable error message")
