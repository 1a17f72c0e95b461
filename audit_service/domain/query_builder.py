"""Translate FilterCriteria into a StoreQuery. Pure functions, no infrastructure or DB access."""

from datetime import datetime, timezone
from typing import Dict, Optional

from audit_service.domain.exceptions import InvalidPaginationError
from audit_service.domain.models.audit_query import (
    FILTER_FIELDS,
    MAX_PAGE_SIZE,
    MAX_SKIP,
    FilterCriteria,
    StoreQuery,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_pagination(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> int:
    """
    Returns the effective page. page < 1 is clamped to 1.
    page_size must be in [1, max_page_size] and the resulting offset must fit in MAX_SKIP;
    raises InvalidPaginationError otherwise.
    """
    if page_size <= 0:
        raise InvalidPaginationError(f"page_size must be positive, got {page_size}")
    if page_size > max_page_size:
        raise InvalidPaginationError(
            f"page_size must not exceed {max_page_size}, got {page_size}"
        )
    page = max(page, 1)
    if (page - 1) * page_size > MAX_SKIP:
        raise InvalidPaginationError(f"page {page} is out of range for page_size {page_size}")
    return page


def build_store_query(criteria: FilterCriteria, max_page_size: int = MAX_PAGE_SIZE) -> StoreQuery:
    """
    Only non-empty criteria become constraints. start_date alone is timestamp >= start,
    end_date alone is timestamp <= end, both is the inclusive range.
    skip = (page - 1) * page_size, limit = page_size.
    """
    page = validate_pagination(criteria.page, criteria.page_size, max_page_size)

    filters: Dict[str, str] = {}
    for name in FILTER_FIELDS:
        value = getattr(criteria, name)
        if value:
            filters[name] = value

    return StoreQuery(
        filters=filters,
        start_date=_as_utc(criteria.start_date),
        end_date=_as_utc(criteria.end_date),
        skip=(page - 1) * criteria.page_size,
        limit=criteria.page_size,
    )
