"""Get listing by ID use case."""

from __future__ import annotations

from dataclasses import dataclass

from auto_catalog.domain.errors import NotFoundError, ValidationError
from auto_catalog.domain.listing import Listing
from auto_catalog.ports.listing_repository import ListingRepository

MAX_LISTING_ID_LENGTH = 64


@dataclass(frozen=True, slots=True)
class GetListingByIdRequest:
    listing_id: str


class GetListingById:
    """
    Use case for retrieving a single listing by its upstream identifier.

    Responsibilities:
    - Reject blank or oversized identifiers
    - Delegate to repository for data access
    - Raise NotFoundError if the listing doesn't exist
    """

    def __init__(self, listing_repository: ListingRepository) -> None:
        self._repository = listing_repository

    def execute(self, request: GetListingByIdRequest) -> Listing:
        """
        Raises:
            ValidationError: If listing_id is blank or too long
            NotFoundError: If no listing has that id
        """
        listing_id = request.listing_id.strip()
        if not listing_id or len(listing_id) > MAX_LISTING_ID_LENGTH:
            raise ValidationError(
                errors=[
                    {
                        "field": "listing_id",
                        "message": f"Must be 1-{MAX_LISTING_ID_LENGTH} characters",
                        "code": "INVALID_ID",
                    }
                ]
            )

        listing = self._repository.get_by_id(listing_id)

        if listing is None:
            raise NotFoundError(resource="Listing", identifier=listing_id)

        return listing
