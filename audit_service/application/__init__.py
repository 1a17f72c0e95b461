# Application layer: services that orchestrate domain and infrastructure.

from audit_service.application.audit_service import AuditService
from audit_service.application.audit_store import AuditPage, AuditStore
from audit_service.application.exceptions import (
    ApplicationError,
    MalformedEventError,
    StoreError,
    StreamReadError,
)
from audit_service.application.ingestion import (
    CallContext,
    decode_audit_event,
    input_from_envelope,
    input_from_request,
)
from audit_service.application.stream_consumer import (
    AuditStreamConsumer,
    ConsumerState,
    StreamReader,
)

__all__ = [
    "AuditService",
    "AuditPage",
    "AuditStore",
    "AuditStreamConsumer",
    "ApplicationError",
    "CallContext",
    "ConsumerState",
    "MalformedEventError",
    "StoreError",
    "StreamReadError",
    "StreamReader",
    "decode_audit_event",
    "input_from_envelope",
    "input_from_request",
]
