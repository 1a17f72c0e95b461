"""Audit store protocol. Application layer depends on this; infrastructure implements it."""

from dataclasses import dataclass, field
from typing import List, Protocol

from audit_service.domain.models.audit_query import StoreQuery
from audit_service.domain.models.audit_record import AuditRecord


@dataclass(frozen=True)
class AuditPage:
    """One page of records, most recent first, and the count of all matching records."""

    records: List[AuditRecord] = field(default_factory=list)
    total: int = 0
    # Effective pagination, filled in by AuditService.
    page: int = 1
    page_size: int = 0


class AuditStore(Protocol):
    """
    Append-only persistence for audit records. Implementations must allow concurrent
    insert and find calls without external locking and raise StoreError on failure.
    """

    async def insert(self, record: AuditRecord) -> None:
        """Persist one record as a single atomic write."""
        ...

    async def find_filtered(self, query: StoreQuery) -> AuditPage:
        """
        Return the page selected by query plus the total for query.for_count().
        The page and the count are separate reads; under concurrent inserts they may skew slightly.
        """
        ...
