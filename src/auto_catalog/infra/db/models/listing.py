from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from auto_catalog.infra.db.models.base import Base


class ListingRow(Base):
    __tablename__ = "listings"

    # Upstream identifier, stable across syncs
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    make: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)

    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True
    )
    mileage_km: Mapped[int | None] = mapped_column(Integer, nullable=True)
    listed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default="{}"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        # Composite indexes match ORDER BY <col> NULLS LAST, id
        Index("ix_listings_price_id", "price", "id"),
        Index("ix_listings_year_id", "year", "id"),
        Index("ix_listings_mileage_km_id", "mileage_km", "id"),
        Index("ix_listings_listed_at_id", "listed_at", "id"),
    )


Index("ix_listings_make_model", func.lower(ListingRow.make), func.lower(ListingRow.model))
