"""
Map Points API: Point SQLAlchemy Model
=========================================

What:  ORM model representing the `points` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by PointStore for create/list/count and by Alembic for schema management.
When:  Instantiated when creating new points; queried when listing or counting.

Table Design:
    - id: UUID generated in Python at insert time (portable across PostgreSQL and SQLite)
    - lat / lng: double precision, no range constraint at the storage level
    - title / description: already trimmed and length-checked by the validator
    - created_at: UTC with timezone, set by the store, drives list ordering
    - user_id: free-text submitter tag, "anonymous" when not supplied

Indexes:
    idx_points_lat_lng:     composite (lat, lng), kept for future spatial reads
    idx_points_created_at:  created_at DESC, serves the newest-first list
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from mappoints.database import Base

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
USER_ID_MAX_LENGTH = 100
ANONYMOUS_USER = "anonymous"


class Point(Base):
    """
    A stored geographic point.

    Lifecycle:
        Created once through PointStore.create(); never updated, never deleted.
    """

    __tablename__ = "points"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier assigned at creation",
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False, comment="Latitude")
    lng: Mapped[float] = mapped_column(Float, nullable=False, comment="Longitude")

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
        comment="Trimmed title, at most 100 characters",
    )

    description: Mapped[str] = mapped_column(
        String(DESCRIPTION_MAX_LENGTH),
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Trimmed description, at most 500 characters",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this point was stored (UTC)",
    )

    user_id: Mapped[str] = mapped_column(
        String(USER_ID_MAX_LENGTH),
        nullable=False,
        default=ANONYMOUS_USER,
        server_default=text(f"'{ANONYMOUS_USER}'"),
        comment="Unverified submitter tag",
    )

    __table_args__ = (
        Index("idx_points_lat_lng", "lat", "lng"),
        Index("idx_points_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Point(id={self.id}, lat={self.lat}, lng={self.lng}, "
            f"title='{self.title}')>"
        )
