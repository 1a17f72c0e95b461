"""Domain schemas. Request/response, stream envelope and validation."""

from audit_service.domain.schemas.audit import (
    AuditEventEnvelope,
    AuditEventPayload,
    AuditLogResponse,
    CreateAuditLogRequest,
    CreateAuditLogResponse,
    ListAuditLogsResponse,
)

__all__ = [
    "AuditEventEnvelope",
    "AuditEventPayload",
    "AuditLogResponse",
    "CreateAuditLogRequest",
    "CreateAuditLogResponse",
    "ListAuditLogsResponse",
]
