from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from auto_catalog.domain.listing import (
    Listing,
    PageRequest,
    PageResult,
    SortDirection,
    SortField,
    SortValidationError,
)
from auto_catalog.entrypoints.http.dtos.listing_search import ListingsSearchQueryDTO
from auto_catalog.entrypoints.http.mappers.listing_search_mapper import ListingSearchMapper


# ==============================================================================
# DTO → Domain
# ==============================================================================


def test_to_domain_request_converts_prices_to_decimal() -> None:
    dto = ListingsSearchQueryDTO(make="Kia", price_min="1000.50", price_max="2000")

    request = ListingSearchMapper.to_domain_request(dto)

    assert request.filters.make == "Kia"
    assert request.filters.price_min == Decimal("1000.50")
    assert request.filters.price_max == Decimal("2000")


def test_to_domain_request_defaults() -> None:
    request = ListingSearchMapper.to_domain_request(ListingsSearchQueryDTO())

    assert request.sort.field is SortField.CREATED_AT
    assert request.sort.direction is SortDirection.DESC
    assert request.page == PageRequest(page=1, page_size=20)


def test_to_domain_sort_resolves_public_names() -> None:
    sort = ListingSearchMapper.to_domain_sort(
        ListingsSearchQueryDTO(sort="mileage", direction="ASC")
    )

    assert sort.field is SortField.MILEAGE
    assert sort.direction is SortDirection.ASC


def test_to_domain_sort_rejects_unknown_field() -> None:
    with pytest.raises(SortValidationError):
        ListingSearchMapper.to_domain_sort(ListingsSearchQueryDTO(sort="mileage_km"))


def test_empty_make_is_no_filter() -> None:
    request = ListingSearchMapper.to_domain_request(ListingsSearchQueryDTO(make=""))

    assert request.filters.make is None


# ==============================================================================
# Domain → DTO
# ==============================================================================


def test_to_response_uses_camel_case_metadata_and_string_prices() -> None:
    listed_at = datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)
    result = PageResult(
        items=[
            Listing(id="1", make="Kia", price=Decimal("9900.50"), listed_at=listed_at),
            Listing(id="2", make="Kia", price=None),
        ],
        total=217,
        page=2,
        page_size=50,
    )

    body = ListingSearchMapper.to_response(result).model_dump(by_alias=True, mode="json")

    assert body["total"] == 217
    assert body["page"] == 2
    assert body["pageSize"] == 50
    assert body["totalPages"] == 5
    assert body["hasNext"] is True
    assert body["hasPrev"] is True
    assert [item["id"] for item in body["items"]] == ["1", "2"]
    assert body["items"][0]["price"] == "9900.50"
    assert body["items"][1]["price"] is None


def test_to_detail_response_includes_payload() -> None:
    listing = Listing(id="1", make="Kia", payload={"lots": [{"buy_now": 9900}]})

    detail = ListingSearchMapper.to_detail_response(listing)

    assert detail.payload == {"lots": [{"buy_now": 9900}]}
    assert detail.make == "Kia"
