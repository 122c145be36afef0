from __future__ import annotations

from dataclasses import dataclass, field

from auto_catalog.domain.listing import ListingFilters, PageRequest, PageResult, SortSpec
from auto_catalog.ports.listing_repository import ListingRepository


@dataclass(frozen=True, slots=True)
class SearchListingsRequest:
    filters: ListingFilters = field(default_factory=ListingFilters)
    sort: SortSpec = field(default_factory=SortSpec)
    page: PageRequest = field(default_factory=PageRequest)


class SearchListings:
    """
    Filtered, globally sorted, paged catalog search.

    This use case validates the query and delegates filtering, ordering and
    slicing to the repository adapter. It never reorders what the repository
    returns: the order of a page is the order of the full candidate set.
    """

    def __init__(self, listing_repository: ListingRepository) -> None:
        self._repository = listing_repository

    def execute(self, request: SearchListingsRequest) -> PageResult:
        """
        Execute catalog search.

        Validates request parameters before delegating to repository.
        This is the single source of validation (contract programming).

        Args:
            request: Search parameters (filters, sort and page)

        Returns:
            PageResult with the requested slice and pagination metadata.
            Pages past the end come back empty with the real total.

        Raises:
            PagingValidationError: If page or page_size is invalid
            SortValidationError: If the sort is outside the allow-list
            FilterValidationError: If filter parameters are invalid
        """
        request.filters.validate()
        request.sort.validate()
        request.page.validate()

        result = self._repository.search(
            filters=request.filters,
            sort=request.sort,
            page=request.page,
        )

        return PageResult(
            items=result.listings,
            total=result.total_count,
            page=request.page.page,
            page_size=request.page.page_size,
        )
