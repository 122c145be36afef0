from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from auto_catalog.domain.listing import Listing, ListingFilters, PageRequest, SortSpec


@dataclass(frozen=True)
class SearchResult:
    """Result from catalog search including the size of the candidate set."""

    listings: list[Listing]
    total_count: int  # Matching listings before paging


class ListingRepository(ABC):
    """
    Port for record store access.

    Contract (Preconditions):
        - filters, sort and page must be pre-validated by caller (UseCase)
        - Implementations trust inputs are valid and do not re-validate

    Contract (Ordering):
        - The whole filtered candidate set is ordered before slicing
        - Nulls in the sort column come last in both directions
        - Ties are broken by listing id ascending
    """

    @abstractmethod
    def search(
        self, filters: ListingFilters, sort: SortSpec, page: PageRequest
    ) -> SearchResult:
        """
        Search catalog with filters, global ordering and paging.

        Args:
            filters: Filter criteria (AND semantics) - pre-validated
            sort: Primary sort key - pre-validated
            page: Page request - pre-validated

        Returns:
            SearchResult with the requested slice and the candidate set size
        """
        ...

    @abstractmethod
    def get_by_id(self, listing_id: str) -> Listing | None: ...

    @abstractmethod
    def upsert_many(self, listings: Sequence[Listing]) -> int:
        """
        Insert or update listings keyed by id.

        Returns:
            Number of listings written

        Raises:
            StoreWriteError: If the batch could not be written
        """
        ...

    @abstractmethod
    def count(self) -> int: ...
