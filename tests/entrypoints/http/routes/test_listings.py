"""
Test suite for the /v1/listings routes.

- Query parameters reach the use case as domain objects
- Responses carry camelCase paging metadata and string prices
- Invalid sort, paging or filters answer 422 and never reach the use case
- Missing listings answer 404
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auto_catalog.adapters.in_memory_listing_repository import InMemoryListingRepository
from auto_catalog.domain.errors import NotFoundError
from auto_catalog.domain.listing import (
    Listing,
    PageRequest,
    PageResult,
    SortDirection,
    SortField,
)
from auto_catalog.entrypoints.http.dependencies import (
    get_listing_by_id_use_case,
    get_search_listings_use_case,
)
from auto_catalog.entrypoints.http.exception_handlers import register_exception_handlers
from auto_catalog.entrypoints.http.routes.listings import router
from auto_catalog.use_cases.search_listings import SearchListings


@pytest.fixture
def app() -> FastAPI:
    """Create a test FastAPI app with listings router and exception handlers."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def mock_use_case() -> Mock:
    return Mock()


@pytest.fixture
def sample_listings() -> list[Listing]:
    return [
        Listing(id="1", make="Hyundai", model="Tucson", year=2021, price=Decimal("18500.00")),
        Listing(id="2", make="Hyundai", model="Tucson", year=2019, price=None),
    ]


# ==============================================================================
# Happy Path
# ==============================================================================


def test_get_listings_maps_query_and_response(
    app: FastAPI, client: TestClient, mock_use_case: Mock, sample_listings: list[Listing]
) -> None:
    mock_use_case.execute.return_value = PageResult(
        items=sample_listings, total=217, page=2, page_size=50
    )
    app.dependency_overrides[get_search_listings_use_case] = lambda: mock_use_case

    response = client.get(
        "/v1/listings",
        params={
            "make": "Hyundai",
            "year_min": 2018,
            "price_max": "35000.00",
            "sort": "price",
            "direction": "asc",
            "page": 2,
            "page_size": 50,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 217
    assert data["page"] == 2
    assert data["pageSize"] == 50
    assert data["totalPages"] == 5
    assert data["hasNext"] is True
    assert data["hasPrev"] is True
    assert [item["id"] for item in data["items"]] == ["1", "2"]
    assert data["items"][0]["price"] == "18500.00"
    assert data["items"][1]["price"] is None

    request = mock_use_case.execute.call_args.args[0]
    assert request.filters.make == "Hyundai"
    assert request.filters.year_min == 2018
    assert request.filters.price_max == Decimal("35000.00")
    assert request.sort.field is SortField.PRICE
    assert request.sort.direction is SortDirection.ASC
    assert request.page == PageRequest(page=2, page_size=50)


def test_get_listings_past_the_end(app: FastAPI, client: TestClient) -> None:
    repository = InMemoryListingRepository([Listing(id=str(i)) for i in range(217)])
    app.dependency_overrides[get_search_listings_use_case] = lambda: SearchListings(repository)

    response = client.get("/v1/listings", params={"page": 9, "page_size": 50})

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["total"] == 217
    assert data["hasNext"] is False


# ==============================================================================
# Validation
# ==============================================================================


def test_get_listings_unknown_sort_field_returns_422(
    app: FastAPI, client: TestClient, mock_use_case: Mock
) -> None:
    app.dependency_overrides[get_search_listings_use_case] = lambda: mock_use_case

    response = client.get("/v1/listings", params={"sort": "color"})

    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["errors"][0]["field"] == "sort"
    mock_use_case.execute.assert_not_called()


@pytest.mark.parametrize(
    "params",
    [
        {"page": 0},
        {"page_size": 101},
        {"page_size": 0},
        {"year_min": 2022, "year_max": 2018},
    ],
)
def test_get_listings_invalid_query_returns_422(
    app: FastAPI, client: TestClient, params: dict[str, int]
) -> None:
    repository = InMemoryListingRepository()
    app.dependency_overrides[get_search_listings_use_case] = lambda: SearchListings(repository)

    response = client.get("/v1/listings", params=params)

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_get_listings_non_integer_page_returns_422(
    app: FastAPI, client: TestClient, mock_use_case: Mock
) -> None:
    app.dependency_overrides[get_search_listings_use_case] = lambda: mock_use_case

    response = client.get("/v1/listings", params={"page": "two"})

    assert response.status_code == 422
    mock_use_case.execute.assert_not_called()


# ==============================================================================
# Get by id
# ==============================================================================


def test_get_listing_returns_detail(
    app: FastAPI, client: TestClient, mock_use_case: Mock
) -> None:
    mock_use_case.execute.return_value = Listing(
        id="41230987", make="Hyundai", price=Decimal("18500.00"), payload={"id": 41230987}
    )
    app.dependency_overrides[get_listing_by_id_use_case] = lambda: mock_use_case

    response = client.get("/v1/listings/41230987")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "41230987"
    assert data["price"] == "18500.00"
    assert data["payload"] == {"id": 41230987}
    assert mock_use_case.execute.call_args.args[0].listing_id == "41230987"


def test_get_listing_not_found_returns_404(
    app: FastAPI, client: TestClient, mock_use_case: Mock
) -> None:
    mock_use_case.execute.side_effect = NotFoundError("Listing", "nope")
    app.dependency_overrides[get_listing_by_id_use_case] = lambda: mock_use_case

    response = client.get("/v1/listings/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
