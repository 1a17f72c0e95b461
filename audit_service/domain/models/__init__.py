"""Domain models. Pure business entities."""

from audit_service.domain.models.audit_query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    FilterCriteria,
    StoreQuery,
)
from audit_service.domain.models.audit_record import (
    AuditRecord,
    AuditRecordFactory,
    AuditResult,
    AuditSeverity,
    MonotonicUtcClock,
    NormalizedAuditInput,
)

__all__ = [
    "AuditRecord",
    "AuditRecordFactory",
    "AuditResult",
    "AuditSeverity",
    "DEFAULT_PAGE_SIZE",
    "FilterCriteria",
    "MAX_PAGE_SIZE",
    "MonotonicUtcClock",
    "NormalizedAuditInput",
    "StoreQuery",
]
