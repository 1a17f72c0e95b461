"""Domain layer: record model, query model, schemas, exceptions. Pure business logic only."""

from audit_service.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InvalidAuditValueError,
    InvalidPaginationError,
)
from audit_service.domain.models import (
    AuditRecord,
    AuditRecordFactory,
    AuditResult,
    AuditSeverity,
    FilterCriteria,
    NormalizedAuditInput,
    StoreQuery,
)
from audit_service.domain.query_builder import build_store_query

__all__ = [
    "AuditRecord",
    "AuditRecordFactory",
    "AuditResult",
    "AuditSeverity",
    "DomainError",
    "DomainValidationError",
    "FilterCriteria",
    "InvalidAuditValueError",
    "InvalidPaginationError",
    "NormalizedAuditInput",
    "StoreQuery",
    "build_store_query",
]
