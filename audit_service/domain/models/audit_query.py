"""Query-side domain types: filter criteria in, store-agnostic query out."""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Tuple

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 500
# Largest offset a signed 64-bit database integer can hold.
MAX_SKIP = 2**63 - 1

# Exact-match criteria, in the order they are applied.
FILTER_FIELDS: Tuple[str, ...] = (
    "merchant_id",
    "user_id",
    "entity_type",
    "entity_id",
    "action",
    "store_id",
    "severity",
    "result",
    "source_service",
    "correlation_id",
)


@dataclass(frozen=True)
class FilterCriteria:
    """Sparse query input. Empty strings and None impose no constraint."""

    merchant_id: str = ""
    user_id: str = ""
    entity_type: str = ""
    entity_id: str = ""
    action: str = ""
    store_id: str = ""
    severity: str = ""
    result: str = ""
    source_service: str = ""
    correlation_id: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class StoreQuery:
    """
    Store-agnostic query: conjunction of exact matches plus an inclusive timestamp range.
    Results are always ordered by timestamp descending, then id descending.
    limit=None means unpaginated (used for the total count).
    """

    filters: Mapping[str, str] = field(default_factory=dict)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    skip: int = 0
    limit: Optional[int] = None

    @property
    def page(self) -> int:
        """1-based page selected by skip/limit."""
        if not self.limit:
            return 1
        return self.skip // self.limit + 1

    def for_count(self) -> "StoreQuery":
        """Same filter, no pagination."""
        return dataclasses.replace(self, skip=0, limit=None)
