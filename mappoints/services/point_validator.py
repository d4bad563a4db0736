"""
Map Points API: Point Validator
==================================

What:  Turns a raw, untyped request payload into a PointDraft or a ValidationError.
How:   Checks rules in a fixed order and raises on the first failure:
         1. lat missing
         2. lng missing
         3. title missing or blank          → "lat, lng and title are required"
         4. title longer than 100 chars     → "title must not exceed 100 characters"
         5. description longer than 500    → "description must not exceed 500 characters"
         6. lat/lng not finite numbers      → "lat and lng must be valid numbers"
         7. lat/lng out of range (opt-in)
         8. userId longer than 100 chars
       Length rules measure the raw input; stored values are trimmed afterwards.
Who:   Called by POST /api/points before anything reaches the store.

No I/O and no settings lookups: the same payload and flags always give
the same result.
"""

import math
from typing import Any, Mapping, Optional

from mappoints.exceptions import ValidationError
from mappoints.models.point import (
    ANONYMOUS_USER,
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    USER_ID_MAX_LENGTH,
)
from mappoints.schemas.point import PointDraft

REQUIRED_FIELDS_MESSAGE = "lat, lng and title are required"
INVALID_NUMBER_MESSAGE = "lat and lng must be valid numbers"
OUT_OF_RANGE_MESSAGE = "lat must be between -90 and 90 and lng between -180 and 180"


def _is_missing(value: Any) -> bool:
    """Absent, null, or a blank string. Zero is a real coordinate."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _as_text(value: Any, field: str) -> str:
    """Accept strings and plain numbers; reject objects, arrays and booleans."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"{field} must be a string", field=field)


def _as_coordinate(value: Any) -> Optional[float]:
    """Float value of a number or numeric string, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # JSON integers have no size limit
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def validate_point_payload(
    payload: Any,
    enforce_range: bool = False,
) -> PointDraft:
    """
    Validate and normalize a create-point payload.

    Args:
        payload: Decoded JSON object or form fields. Anything that is not a
                 mapping is treated as an empty object.
        enforce_range: Also require -90 <= lat <= 90 and -180 <= lng <= 180.

    Returns:
        PointDraft with float coordinates, trimmed title, trimmed (or empty)
        description and trimmed (or "anonymous") user id.

    Raises:
        ValidationError: for the first rule the payload breaks.
    """
    data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    raw_lat = data.get("lat")
    raw_lng = data.get("lng")
    raw_title = data.get("title")
    raw_description = data.get("description")
    raw_user_id = data.get("userId")

    # ── Rules 1-3: required fields ────────────────────────────────────────
    for field, value in (("lat", raw_lat), ("lng", raw_lng), ("title", raw_title)):
        if _is_missing(value):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE, field=field)

    # ── Rule 4: title length ──────────────────────────────────────────────
    title = _as_text(raw_title, "title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"title must not exceed {TITLE_MAX_LENGTH} characters",
            field="title",
            context={"length": len(title)},
        )

    # ── Rule 5: description length ────────────────────────────────────────
    description = ""
    if raw_description is not None:
        description = _as_text(raw_description, "description")
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"description must not exceed {DESCRIPTION_MAX_LENGTH} characters",
                field="description",
                context={"length": len(description)},
            )

    # ── Rules 6-7: coordinates ────────────────────────────────────────────
    lat = _as_coordinate(raw_lat)
    lng = _as_coordinate(raw_lng)
    if lat is None or lng is None:
        raise ValidationError(
            INVALID_NUMBER_MESSAGE,
            field="lat" if lat is None else "lng",
        )
    if enforce_range and not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise ValidationError(OUT_OF_RANGE_MESSAGE, context={"lat": lat, "lng": lng})

    # ── Rule 8: submitter tag ─────────────────────────────────────────────
    user_id = ANONYMOUS_USER
    if not _is_missing(raw_user_id):
        user_text = _as_text(raw_user_id, "userId")
        if len(user_text) > USER_ID_MAX_LENGTH:
            raise ValidationError(
                f"userId must not exceed {USER_ID_MAX_LENGTH} characters",
                field="userId",
            )
        user_id = user_text.strip()

    return PointDraft(
        lat=lat,
        lng=lng,
        title=title.strip(),
        description=description.strip(),
        user_id=user_id,
    )
