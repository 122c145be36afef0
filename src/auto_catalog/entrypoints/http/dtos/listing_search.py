from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ListingResponseDTO(BaseModel):
    id: str
    make: str | None
    model: str | None
    title: str | None
    year: int | None
    price: str | None
    mileage_km: int | None
    listed_at: datetime | None


class ListingDetailResponseDTO(ListingResponseDTO):
    payload: dict[str, Any]


class ListingsSearchQueryDTO(BaseModel):
    """Query parameters for searching the listing catalog."""

    make: str | None = Field(
        default=None,
        description="Filter by make (case-insensitive exact match)",
        examples=["Hyundai"],
    )
    model: str | None = Field(
        default=None,
        description="Filter by model (case-insensitive exact match)",
        examples=["Tucson"],
    )
    year_min: int | None = Field(
        default=None,
        description="Minimum year (inclusive)",
        examples=[2018],
        ge=1900,
    )
    year_max: int | None = Field(
        default=None,
        description="Maximum year (inclusive)",
        examples=[2023],
        ge=1900,
    )
    price_min: str | None = Field(
        default=None,
        description="Minimum price (inclusive, decimal as string)",
        examples=["10000.00"],
        pattern=r"^\d+(\.\d{1,2})?$",
    )
    price_max: str | None = Field(
        default=None,
        description="Maximum price (inclusive, decimal as string)",
        examples=["35000.00"],
        pattern=r"^\d+(\.\d{1,2})?$",
    )
    mileage_min: int | None = Field(
        default=None,
        description="Minimum mileage in km (inclusive)",
        examples=[0],
        ge=0,
    )
    mileage_max: int | None = Field(
        default=None,
        description="Maximum mileage in km (inclusive)",
        examples=[120000],
        ge=0,
    )
    sort: str = Field(
        default="created_at",
        description="Sort field: price, year, mileage, created_at or name",
        examples=["price"],
    )
    direction: str = Field(
        default="desc",
        description="Sort direction: asc or desc",
        examples=["asc"],
    )
    page: int = Field(
        default=1,
        description="1-based page number; pages past the end return no items",
        examples=[1],
    )
    page_size: int = Field(
        default=20,
        description="Listings per page (max 100)",
        examples=[20],
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "make": "Hyundai",
                "year_min": 2018,
                "price_max": "35000.00",
                "sort": "price",
                "direction": "asc",
                "page": 2,
                "page_size": 50,
            }
        }
    )


class ListingsPageResponseDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[ListingResponseDTO]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")
