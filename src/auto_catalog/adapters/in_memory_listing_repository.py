from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from auto_catalog.domain.listing import Listing, ListingFilters, PageRequest, SortSpec
from auto_catalog.ports.listing_repository import ListingRepository, SearchResult


class InMemoryListingRepository(ListingRepository):
    """
    Canonical contract implementation for tests.

    - Stores listings keyed by id, upserts replace in place
    - Applies AND-semantics filtering
    - Orders the WHOLE candidate set (nulls last, id tie-break)
    - Applies paging AFTER ordering
    - Returns total_count of matching listings before paging
    """

    def __init__(self, listings: Sequence[Listing] = ()) -> None:
        self._listings: dict[str, Listing] = {}
        for listing in listings:
            self._listings[listing.id] = listing

    def search(
        self, filters: ListingFilters, sort: SortSpec, page: PageRequest
    ) -> SearchResult:
        # Trust that UseCase has validated inputs (contract programming)
        matches = [
            listing for listing in self._listings.values() if self._matches(listing, filters)
        ]
        ordered = self._order(matches, sort)

        start = page.offset
        end = page.offset + page.limit

        return SearchResult(listings=ordered[start:end], total_count=len(ordered))

    def get_by_id(self, listing_id: str) -> Listing | None:
        return self._listings.get(listing_id)

    def upsert_many(self, listings: Sequence[Listing]) -> int:
        for listing in listings:
            self._listings[listing.id] = listing
        return len(listings)

    def count(self) -> int:
        return len(self._listings)

    def _order(self, listings: list[Listing], sort: SortSpec) -> list[Listing]:
        column = sort.field.column

        present = sorted(
            (listing for listing in listings if self._value(listing, column) is not None),
            key=lambda listing: listing.id,
        )
        missing = sorted(
            (listing for listing in listings if self._value(listing, column) is None),
            key=lambda listing: listing.id,
        )

        # list.sort is stable with reverse=True, so the id order survives for ties
        present.sort(key=lambda listing: self._value(listing, column), reverse=sort.descending)
        return present + missing

    @staticmethod
    def _value(listing: Listing, column: str) -> Any:
        return getattr(listing, column)

    def _matches(self, listing: Listing, filters: ListingFilters) -> bool:
        if filters.make and (listing.make or "").lower() != filters.make.lower():
            return False
        if filters.model and (listing.model or "").lower() != filters.model.lower():
            return False
        if not self._in_range(listing.year, filters.year_min, filters.year_max):
            return False
        if not self._in_range(listing.price, filters.price_min, filters.price_max):
            return False
        if not self._in_range(listing.mileage_km, filters.mileage_min, filters.mileage_max):
            return False
        return True

    @staticmethod
    def _in_range(value: Any, low: Any, high: Any) -> bool:
        if low is None and high is None:
            return True
        # SQL semantics: NULL never satisfies a range predicate
        if value is None:
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True
