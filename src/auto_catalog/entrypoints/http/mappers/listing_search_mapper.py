from __future__ import annotations

from decimal import Decimal

from auto_catalog.domain.listing import (
    Listing,
    ListingFilters,
    PageRequest,
    PageResult,
    SortDirection,
    SortField,
    SortSpec,
)
from auto_catalog.entrypoints.http.dtos.listing_search import (
    ListingDetailResponseDTO,
    ListingResponseDTO,
    ListingsPageResponseDTO,
    ListingsSearchQueryDTO,
)
from auto_catalog.use_cases.search_listings import SearchListingsRequest


class ListingSearchMapper:
    """Maps between REST DTOs and domain models for catalog search."""

    @staticmethod
    def to_domain_filters(dto: ListingsSearchQueryDTO) -> ListingFilters:
        """Converts query params to domain filters, handling Decimal conversion."""
        return ListingFilters(
            make=dto.make or None,
            model=dto.model or None,
            year_min=dto.year_min,
            year_max=dto.year_max,
            price_min=Decimal(dto.price_min) if dto.price_min else None,
            price_max=Decimal(dto.price_max) if dto.price_max else None,
            mileage_min=dto.mileage_min,
            mileage_max=dto.mileage_max,
        )

    @staticmethod
    def to_domain_sort(dto: ListingsSearchQueryDTO) -> SortSpec:
        """
        Resolves the public sort name through the allow-list.

        Raises:
            SortValidationError: If field or direction is not allowed
        """
        return SortSpec(
            field=SortField.parse(dto.sort),
            direction=SortDirection.parse(dto.direction),
        )

    @staticmethod
    def to_domain_request(dto: ListingsSearchQueryDTO) -> SearchListingsRequest:
        return SearchListingsRequest(
            filters=ListingSearchMapper.to_domain_filters(dto),
            sort=ListingSearchMapper.to_domain_sort(dto),
            page=PageRequest(page=dto.page, page_size=dto.page_size),
        )

    @staticmethod
    def to_listing_response(listing: Listing) -> ListingResponseDTO:
        """Decimal → str at the boundary."""
        return ListingResponseDTO(
            id=listing.id,
            make=listing.make,
            model=listing.model,
            title=listing.title,
            year=listing.year,
            price=str(listing.price) if listing.price is not None else None,
            mileage_km=listing.mileage_km,
            listed_at=listing.listed_at,
        )

    @staticmethod
    def to_detail_response(listing: Listing) -> ListingDetailResponseDTO:
        summary = ListingSearchMapper.to_listing_response(listing)
        return ListingDetailResponseDTO(**summary.model_dump(), payload=listing.payload)

    @staticmethod
    def to_response(result: PageResult) -> ListingsPageResponseDTO:
        # Items keep the repository order; never re-sorted here
        return ListingsPageResponseDTO(
            items=[ListingSearchMapper.to_listing_response(item) for item in result.items],
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_previous,
        )
