"""PostgreSQL implementation of ListingRepository."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auto_catalog.domain.errors import StoreWriteError
from auto_catalog.domain.listing import Listing, ListingFilters, PageRequest, SortSpec
from auto_catalog.infra.db.models.listing import ListingRow
from auto_catalog.ports.listing_repository import ListingRepository, SearchResult

if TYPE_CHECKING:
    from sqlalchemy.sql import Select
    from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)

# Columns refreshed from EXCLUDED on conflict; created_at keeps the first sighting
_UPDATABLE_COLUMNS = (
    "make",
    "model",
    "title",
    "year",
    "price",
    "mileage_km",
    "listed_at",
    "payload",
)


class PostgresListingRepository(ListingRepository):
    """
    PostgreSQL implementation of ListingRepository.

    - Applies filters using SQL WHERE clauses
    - Delegates the global ordering to ORDER BY ... NULLS LAST, id ASC
    - Returns total_count via COUNT(*) over the same filtered query
    - Upserts with INSERT ... ON CONFLICT (id) DO UPDATE
    """

    def __init__(self, session: Session) -> None:
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self._session = session

    def search(
        self, filters: ListingFilters, sort: SortSpec, page: PageRequest
    ) -> SearchResult:
        """
        Search catalog with filters, ordering and paging.

        Executes two queries:
        1. COUNT(*) over the filtered candidate set
        2. SELECT ... ORDER BY ... OFFSET/LIMIT over the same candidate set

        The ordering runs in the database over the full candidate set, never
        over an already-sliced page.
        """
        query = self._build_query(filters)

        count_query = select(func.count()).select_from(query.subquery())
        total_count = self._session.execute(count_query).scalar() or 0

        query = query.order_by(*self._order_by(sort))
        query = query.offset(page.offset).limit(page.limit)

        rows = self._session.execute(query).scalars().all()
        listings = [self._to_domain(row) for row in rows]

        return SearchResult(listings=listings, total_count=total_count)

    def get_by_id(self, listing_id: str) -> Listing | None:
        query = select(ListingRow).where(ListingRow.id == listing_id)
        row = self._session.execute(query).scalar_one_or_none()
        return self._to_domain(row) if row else None

    def upsert_many(self, listings: Sequence[Listing]) -> int:
        """
        Insert or update a batch keyed by id in a single statement.

        Duplicate ids inside one batch are collapsed (last wins) because
        Postgres refuses to touch the same row twice in one ON CONFLICT.

        Raises:
            StoreWriteError: If the statement fails; the batch is rolled back
        """
        if not listings:
            return 0

        values = list({listing.id: self._to_values(listing) for listing in listings}.values())

        stmt = pg_insert(ListingRow).values(values)
        update_set: dict[str, Any] = {name: stmt.excluded[name] for name in _UPDATABLE_COLUMNS}
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=[ListingRow.id], set_=update_set)

        try:
            self._session.execute(stmt)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning(
                "Listing upsert failed",
                extra={"batch_size": len(values), "error": str(exc)},
            )
            raise StoreWriteError(
                f"Upsert of {len(values)} listings failed: {exc}", batch_size=len(values)
            ) from exc

        return len(values)

    def count(self) -> int:
        return self._session.execute(select(func.count()).select_from(ListingRow)).scalar() or 0

    def _build_query(self, filters: ListingFilters) -> Select[tuple[ListingRow]]:
        query = select(ListingRow)

        # Case-insensitive exact match for make/model
        if filters.make:
            query = query.where(func.lower(ListingRow.make) == func.lower(filters.make))
        if filters.model:
            query = query.where(func.lower(ListingRow.model) == func.lower(filters.model))

        # Range filters (inclusive)
        if filters.year_min is not None:
            query = query.where(ListingRow.year >= filters.year_min)
        if filters.year_max is not None:
            query = query.where(ListingRow.year <= filters.year_max)
        if filters.price_min is not None:
            query = query.where(ListingRow.price >= filters.price_min)
        if filters.price_max is not None:
            query = query.where(ListingRow.price <= filters.price_max)
        if filters.mileage_min is not None:
            query = query.where(ListingRow.mileage_km >= filters.mileage_min)
        if filters.mileage_max is not None:
            query = query.where(ListingRow.mileage_km <= filters.mileage_max)

        return query

    @staticmethod
    def _order_by(sort: SortSpec) -> list[ColumnElement[Any]]:
        # Column comes from the SortField allow-list, never from caller input
        column = getattr(ListingRow, sort.field.column)
        primary = column.desc() if sort.descending else column.asc()
        return [primary.nulls_last(), ListingRow.id.asc()]

    @staticmethod
    def _to_values(listing: Listing) -> dict[str, Any]:
        return {
            "id": listing.id,
            "make": listing.make,
            "model": listing.model,
            "title": listing.title,
            "year": listing.year,
            "price": listing.price,
            "mileage_km": listing.mileage_km,
            "listed_at": listing.listed_at,
            "payload": listing.payload,
        }

    @staticmethod
    def _to_domain(row: ListingRow) -> Listing:
        return Listing(
            id=row.id,
            make=row.make,
            model=row.model,
            title=row.title,
            year=row.year,
            price=row.price,  # Already Decimal from NUMERIC column
            mileage_km=row.mileage_km,
            listed_at=row.listed_at,
            payload=row.payload or {},
        )
