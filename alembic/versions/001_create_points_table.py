"""Create points table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `points` table with its (lat, lng) and created_at indexes.
How:   Portable column types (UUID, DOUBLE/FLOAT, TIMESTAMP WITH TIME ZONE);
       ids are generated by the application, not the database.

Rollback: downgrade() drops the table entirely (all points are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the points table, see mappoints/models/point.py for column docs."""
    op.create_table(
        "points",
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Unique identifier assigned at creation",
        ),
        sa.Column("lat", sa.Float(), nullable=False, comment="Latitude"),
        sa.Column("lng", sa.Float(), nullable=False, comment="Longitude"),
        sa.Column(
            "title",
            sa.String(100),
            nullable=False,
            comment="Trimmed title, at most 100 characters",
        ),
        sa.Column(
            "description",
            sa.String(500),
            nullable=False,
            server_default=sa.text("''"),
            comment="Trimmed description, at most 500 characters",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this point was stored (UTC)",
        ),
        sa.Column(
            "user_id",
            sa.String(100),
            nullable=False,
            server_default=sa.text("'anonymous'"),
            comment="Unverified submitter tag",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Maintained for future spatial reads; list ordering never uses it
    op.create_index("idx_points_lat_lng", "points", ["lat", "lng"])

    # Serves ORDER BY created_at DESC for the list endpoint
    op.create_index(
        "idx_points_created_at",
        "points",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop the points table (destructive)."""
    op.drop_index("idx_points_created_at", table_name="points")
    op.drop_index("idx_points_lat_lng", table_name="points")
    op.drop_table("points")
