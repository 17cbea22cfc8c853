"""Pagination state for the server-rendered transaction listing.

The listing has no total count: a full page implies there may be another
one, a short page is the last.  An in-flight fetch is shown client-side by
the HTMX request indicator, so no state here tracks it.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

LISTING_PAGE_SIZE = 10

FETCH_ERROR_MESSAGE = "Failed to fetch transactions"


@dataclass
class ListingState:
    """What the listing page shows for one page request.

    Attributes:
        page: Current 1-based page
        transactions: Records on this page
        has_next_page: True iff the page came back full
        error: Message shown instead of the table, if the fetch failed
    """

    page: int = 1
    transactions: List[Any] = field(default_factory=list)
    has_next_page: bool = False
    error: Optional[str] = None

    def __post_init__(self) -> None:
        self.page = max(int(self.page), 1)

    @classmethod
    def from_page(cls, page: int, records: List[Any],
                  per_page: int = LISTING_PAGE_SIZE) -> "ListingState":
        """State after a successful fetch of ``page``."""
        return cls(page=page, transactions=list(records),
                   has_next_page=len(records) == per_page)

    @classmethod
    def failed(cls, page: int, message: str = FETCH_ERROR_MESSAGE) -> "ListingState":
        """State after a failed fetch; no records are shown."""
        return cls(page=page, error=message)

    @property
    def previous_page(self) -> int:
        return max(self.page - 1, 1)

    @property
    def next_page(self) -> int:
        return self.page + 1 if self.has_next_page else self.page

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1
