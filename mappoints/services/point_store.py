"""
Map Points API: Point Store
==============================

What:  Persistence operations for points: create, list, count.
How:   Each method runs one statement on the session it is given and wraps
       any storage failure in PersistenceError. No retries.
Who:   Called by the points and health route handlers.
When:  Once per request that reads or writes points.

List Policy:
    Results are capped at MAX_LIST_LIMIT (1000) regardless of what the caller
    asks for, and ordered by created_at with id as the tie-breaker. The
    (lat, lng) index never influences ordering.

    Query plan (default sort):
        SELECT * FROM points ORDER BY created_at DESC, id DESC LIMIT :limit
        → idx_points_created_at
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mappoints.exceptions import PersistenceError
from mappoints.models.point import Point
from mappoints.schemas.point import PointDraft

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000
SORT_NEWEST_FIRST = "created_at_desc"
SORT_OLDEST_FIRST = "created_at_asc"

# Driver connection failures surface as OSError subclasses, not SQLAlchemyError
STORAGE_ERRORS = (SQLAlchemyError, OSError)


class PointStore:
    """
    Stateless store over the points table.

    Every method receives the request's AsyncSession, so one instance is
    shared by all concurrent requests.
    """

    async def create(self, db: AsyncSession, draft: PointDraft) -> Point:
        """
        Persist a validated draft and return the stored point.

        The id and created_at are assigned here, then the write is committed
        so the caller only sees a point once storage has confirmed it.

        Raises:
            PersistenceError: storage unreachable or the write was rejected
        """
        point = Point(
            lat=draft.lat,
            lng=draft.lng,
            title=draft.title,
            description=draft.description,
            user_id=draft.user_id,
            created_at=datetime.now(timezone.utc),
        )
        try:
            db.add(point)
            await db.commit()
        except STORAGE_ERRORS as e:
            logger.error("Error saving point: %s", e, exc_info=True)
            await db.rollback()
            raise PersistenceError(context={"operation": "create", "error_type": type(e).__name__})

        logger.info("New point added: %s", point.title)
        return point

    async def list_points(
        self,
        db: AsyncSession,
        limit: int = MAX_LIST_LIMIT,
        sort: str = SORT_NEWEST_FIRST,
    ) -> List[Point]:
        """
        Return up to `limit` points ordered by created_at.

        Args:
            db: Async database session
            limit: Requested size; clamped to MAX_LIST_LIMIT, below 1 gives []
            sort: 'created_at_desc' (newest first, default) or 'created_at_asc'

        Raises:
            PersistenceError: the read failed
        """
        limit = min(limit, MAX_LIST_LIMIT)
        if limit < 1:
            return []

        # id breaks created_at ties so repeated reads return the same sequence
        direction = asc if sort == SORT_OLDEST_FIRST else desc
        query = (
            select(Point)
            .order_by(direction(Point.created_at), direction(Point.id))
            .limit(limit)
        )

        try:
            result = await db.execute(query)
        except STORAGE_ERRORS as e:
            logger.error("Error fetching points: %s", e, exc_info=True)
            raise PersistenceError(context={"operation": "list", "error_type": type(e).__name__})
        return list(result.scalars().all())

    async def count(self, db: AsyncSession) -> int:
        """
        Total number of stored points; used by the health check.

        Raises:
            PersistenceError: the count query failed
        """
        try:
            result = await db.execute(select(func.count(Point.id)))
        except STORAGE_ERRORS as e:
            logger.error("Error counting points: %s", e, exc_info=True)
            raise PersistenceError(context={"operation": "count", "error_type": type(e).__name__})
        return result.scalar() or 0


point_store = PointStore()
