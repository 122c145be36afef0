"""Create listings, ingestion checkpoint and sync status tables

Revision ID: 3c1e5b7d9a20
Revises:
Create Date: 2026-10-19 09:12:40.118302

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1e5b7d9a20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("make", sa.String(length=100), nullable=True),
        sa.Column("model", sa.String(length=100), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("mileage_km", sa.Integer(), nullable=True),
        sa.Column("listed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "payload",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default="{}",
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_listings_price_id", "listings", ["price", "id"])
    op.create_index("ix_listings_year_id", "listings", ["year", "id"])
    op.create_index("ix_listings_mileage_km_id", "listings", ["mileage_km", "id"])
    op.create_index("ix_listings_listed_at_id", "listings", ["listed_at", "id"])
    op.create_index(
        "ix_listings_make_model",
        "listings",
        [sa.text("lower(make)"), sa.text("lower(model)")],
    )

    op.create_table(
        "ingestion_checkpoints",
        sa.Column("stream", sa.String(length=64), nullable=False),
        sa.Column("document", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("stream"),
    )

    op.create_table(
        "sync_status",
        sa.Column("stream", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="idle", nullable=False),
        sa.Column("run_id", sa.String(length=64), nullable=True),
        sa.Column("current_page", sa.Integer(), server_default="0", nullable=False),
        sa.Column("records_processed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("skipped_records", sa.Integer(), server_default="0", nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("stop_requested", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("stream"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("sync_status")
    op.drop_table("ingestion_checkpoints")
    op.drop_index("ix_listings_make_model", table_name="listings")
    op.drop_index("ix_listings_listed_at_id", table_name="listings")
    op.drop_index("ix_listings_mileage_km_id", table_name="listings")
    op.drop_index("ix_listings_year_id", table_name="listings")
    op.drop_index("ix_listings_price_id", table_name="listings")
    op.drop_table("listings")
