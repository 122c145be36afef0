from fastapi import APIRouter, Depends

from auto_catalog.entrypoints.http.dependencies import (
    get_listing_by_id_use_case,
    get_search_listings_use_case,
)
from auto_catalog.entrypoints.http.dtos.listing_search import (
    ListingDetailResponseDTO,
    ListingsPageResponseDTO,
    ListingsSearchQueryDTO,
)
from auto_catalog.entrypoints.http.error_responses import ErrorResponse
from auto_catalog.entrypoints.http.mappers.listing_search_mapper import ListingSearchMapper
from auto_catalog.use_cases.get_listing_by_id import GetListingById, GetListingByIdRequest
from auto_catalog.use_cases.search_listings import SearchListings


router = APIRouter(tags=["Listings"])


@router.get(
    "/listings",
    response_model=ListingsPageResponseDTO,
    response_model_by_alias=True,
    summary="Search the listing catalog",
    description="""
    Page through the catalog under a global ordering.

    ## Ordering
    - sort: price, year, mileage, created_at (default) or name
    - direction: asc or desc (default)
    - Listings missing the sort value come last in both directions
    - Ties are broken by listing id, ascending

    ## Paging
    - 1-based `page`, `page_size` between 1 and 100 (default 20)
    - A page past the end returns no items and the real total

    ## Example
    ```
    GET /v1/listings?make=Hyundai&sort=price&direction=asc&page=2&page_size=50
    ```
    """,
    responses={
        200: {
            "description": "Successful response",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "41230987",
                                "make": "Hyundai",
                                "model": "Tucson",
                                "title": "Hyundai Tucson 2021",
                                "year": 2021,
                                "price": "18500.00",
                                "mileage_km": 42000,
                                "listed_at": "2024-05-01T10:00:00Z",
                            }
                        ],
                        "total": 217,
                        "page": 2,
                        "pageSize": 50,
                        "totalPages": 5,
                        "hasNext": True,
                        "hasPrev": True,
                    }
                }
            },
        },
        422: {"description": "Invalid sort, paging or filter", "model": ErrorResponse},
    },
)
def get_listings(
    query: ListingsSearchQueryDTO = Depends(),
    use_case: SearchListings = Depends(get_search_listings_use_case),
) -> ListingsPageResponseDTO:
    """Search listings endpoint following parse → execute → map → return pattern."""
    # 1. Map to domain request (sort name resolved through the allow-list)
    request = ListingSearchMapper.to_domain_request(query)

    # 2. Execute use case
    result = use_case.execute(request)

    # 3. Map to response
    return ListingSearchMapper.to_response(result)


@router.get(
    "/listings/{listing_id}",
    response_model=ListingDetailResponseDTO,
    summary="Get one listing",
    responses={
        404: {"description": "Listing not found", "model": ErrorResponse},
        422: {"description": "Invalid listing id", "model": ErrorResponse},
    },
)
def get_listing(
    listing_id: str,
    use_case: GetListingById = Depends(get_listing_by_id_use_case),
) -> ListingDetailResponseDTO:
    listing = use_case.execute(GetListingByIdRequest(listing_id=listing_id))
    return ListingSearchMapper.to_detail_response(listing)
