from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from auto_catalog.domain.errors import InvalidQueryError


# ==============================================================================
# Domain Exceptions
# ==============================================================================


class PagingValidationError(InvalidQueryError):
    """Raised when paging parameters are invalid."""

    pass


class FilterValidationError(InvalidQueryError):
    """Raised when filter parameters are invalid."""

    pass


class SortValidationError(InvalidQueryError):
    """Raised when the sort field or direction is not in the allow-list."""

    pass


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class Listing:
    id: str
    make: str | None = None
    model: str | None = None
    title: str | None = None
    year: int | None = None
    price: Decimal | None = None
    mileage_km: int | None = None
    listed_at: datetime | None = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class ListingFilters:
    make: str | None = None
    model: str | None = None
    year_min: int | None = None
    year_max: int | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    mileage_min: int | None = None
    mileage_max: int | None = None

    def validate(self) -> None:
        """
        Validate filter parameters.

        Raises:
            FilterValidationError: If filter parameters are invalid
        """
        # Guardrails: prevent float leakage past boundary
        for name in ("price_min", "price_max"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Decimal):
                raise FilterValidationError(
                    f"{name} must be Decimal or None (no floats past the boundary)"
                )

        for low_name, high_name in (
            ("year_min", "year_max"),
            ("price_min", "price_max"),
            ("mileage_min", "mileage_max"),
        ):
            low = getattr(self, low_name)
            high = getattr(self, high_name)
            if low is not None and high is not None and low > high:
                raise FilterValidationError(
                    f"{low_name} cannot be greater than {high_name}",
                    errors=[
                        {
                            "field": low_name,
                            "message": f"Must be less than or equal to {high_name}",
                            "code": "INVALID_RANGE",
                        }
                    ],
                )

        if self.mileage_min is not None and self.mileage_min < 0:
            raise FilterValidationError("mileage_min must be >= 0")


class SortField(str, Enum):
    """Sortable fields exposed to callers.

    Values are the public names; the storage column lives in ``column``.
    """

    PRICE = "price"
    YEAR = "year"
    MILEAGE = "mileage"
    CREATED_AT = "created_at"
    NAME = "name"

    @property
    def column(self) -> str:
        return _SORT_COLUMNS[self]

    @classmethod
    def parse(cls, value: str) -> SortField:
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise SortValidationError(
                f"Unsupported sort field '{value}'",
                errors=[
                    {
                        "field": "sort",
                        "message": f"Must be one of: {allowed}",
                        "code": "INVALID_SORT_FIELD",
                    }
                ],
            ) from None


_SORT_COLUMNS: dict[SortField, str] = {
    SortField.PRICE: "price",
    SortField.YEAR: "year",
    SortField.MILEAGE: "mileage_km",
    SortField.CREATED_AT: "listed_at",
    SortField.NAME: "title",
}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str) -> SortDirection:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise SortValidationError(
                f"Unsupported sort direction '{value}'",
                errors=[
                    {
                        "field": "direction",
                        "message": "Must be one of: asc, desc",
                        "code": "INVALID_SORT_DIRECTION",
                    }
                ],
            ) from None


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Primary sort key. Every ordering is completed by ``id ASC`` as tie-break."""

    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC

    TIE_BREAK_COLUMN = "id"

    def validate(self) -> None:
        if not isinstance(self.field, SortField):
            raise SortValidationError(f"Unsupported sort field '{self.field}'")
        if not isinstance(self.direction, SortDirection):
            raise SortValidationError(f"Unsupported sort direction '{self.direction}'")

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @property
    def signature(self) -> str:
        return f"{self.field.value}:{self.direction.value},id:asc"


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def validate(self) -> None:
        """
        Validate paging parameters.

        Raises:
            PagingValidationError: If paging parameters are invalid
        """
        if self.page < 1:
            raise PagingValidationError("page must be >= 1")
        if self.page_size <= 0:
            raise PagingValidationError("page_size must be > 0")
        if self.page_size > MAX_PAGE_SIZE:
            raise PagingValidationError(f"page_size must be <= {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True, slots=True)
class PageResult:
    items: list[Listing]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total

    @property
    def has_previous(self) -> bool:
        # Out-of-range pages still point back while there is anything to go back to
        return self.page > 1 and self.total > 0
