from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from auto_catalog.domain.listing import Listing


@dataclass(frozen=True)
class SourcePage:
    """One upstream page, already normalized.

    ``raw_count`` is what the upstream returned; ``listings`` excludes the
    ``skipped`` records that could not be normalized.
    """

    page: int
    listings: list[Listing] = field(default_factory=list)
    raw_count: int = 0
    skipped: int = 0
    has_more: bool = False
    current_page: int | None = None
    last_page: int | None = None
    total: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.raw_count == 0


class ListingSource(ABC):
    """Port for the upstream paged API. Implementations never retry."""

    @abstractmethod
    def fetch_page(self, page: int) -> SourcePage:
        """
        Raises:
            FetchError: On transport failure, timeout or unusable response
        """
        ...
