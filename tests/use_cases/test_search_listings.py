"""Test suite for SearchListings use case."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import Mock

import pytest

from auto_catalog.adapters.in_memory_listing_repository import InMemoryListingRepository
from auto_catalog.domain.listing import (
    FilterValidationError,
    Listing,
    ListingFilters,
    PageRequest,
    PagingValidationError,
    SortDirection,
    SortField,
    SortSpec,
    SortValidationError,
)
from auto_catalog.ports.listing_repository import ListingRepository, SearchResult
from auto_catalog.use_cases.search_listings import SearchListings, SearchListingsRequest


@pytest.fixture()
def mock_repository() -> Mock:
    return Mock(spec=ListingRepository)


# ==============================================================================
# Delegation
# ==============================================================================


def test_execute_delegates_and_builds_page_result(mock_repository: Mock) -> None:
    listings = [Listing(id="1"), Listing(id="2")]
    mock_repository.search.return_value = SearchResult(listings=listings, total_count=217)
    use_case = SearchListings(listing_repository=mock_repository)
    request = SearchListingsRequest(
        filters=ListingFilters(make="Kia"),
        sort=SortSpec(SortField.PRICE, SortDirection.ASC),
        page=PageRequest(page=2, page_size=50),
    )

    result = use_case.execute(request)

    mock_repository.search.assert_called_once_with(
        filters=request.filters, sort=request.sort, page=request.page
    )
    assert result.items == listings
    assert result.total == 217
    assert result.page == 2
    assert result.page_size == 50
    assert result.total_pages == 5
    assert result.has_next is True
    assert result.has_previous is True


def test_execute_keeps_repository_order(mock_repository: Mock) -> None:
    listings = [Listing(id="z"), Listing(id="a"), Listing(id="m")]
    mock_repository.search.return_value = SearchResult(listings=listings, total_count=3)

    result = SearchListings(mock_repository).execute(SearchListingsRequest())

    assert [listing.id for listing in result.items] == ["z", "a", "m"]


def test_execute_defaults(mock_repository: Mock) -> None:
    mock_repository.search.return_value = SearchResult(listings=[], total_count=0)

    SearchListings(mock_repository).execute(SearchListingsRequest())

    kwargs = mock_repository.search.call_args.kwargs
    assert kwargs["sort"] == SortSpec(SortField.CREATED_AT, SortDirection.DESC)
    assert kwargs["page"] == PageRequest(page=1, page_size=20)


# ==============================================================================
# Validation (never silently corrected)
# ==============================================================================


@pytest.mark.parametrize(
    ("request_", "error"),
    [
        (SearchListingsRequest(page=PageRequest(page=0)), PagingValidationError),
        (SearchListingsRequest(page=PageRequest(page_size=101)), PagingValidationError),
        (SearchListingsRequest(page=PageRequest(page_size=0)), PagingValidationError),
        (
            SearchListingsRequest(filters=ListingFilters(price_min=Decimal("5"), price_max=Decimal("1"))),
            FilterValidationError,
        ),
        (SearchListingsRequest(sort=SortSpec(field="color")), SortValidationError),  # type: ignore[arg-type]
    ],
)
def test_execute_rejects_invalid_requests(
    mock_repository: Mock, request_: SearchListingsRequest, error: type[Exception]
) -> None:
    with pytest.raises(error):
        SearchListings(mock_repository).execute(request_)

    mock_repository.search.assert_not_called()


# ==============================================================================
# End to end with the in-memory adapter
# ==============================================================================


def test_page_past_the_end_returns_empty_items_and_real_total() -> None:
    repository = InMemoryListingRepository([Listing(id=str(i)) for i in range(217)])

    result = SearchListings(repository).execute(
        SearchListingsRequest(page=PageRequest(page=9, page_size=50))
    )

    assert result.items == []
    assert result.total == 217
    assert result.has_next is False
    assert result.has_previous is True
