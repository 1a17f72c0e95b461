"""Pydantic schemas for the audit API and the stream envelope. No DB or infrastructure."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from audit_service.domain.models.audit_record import AuditResult, AuditSeverity


def _ensure_json_serializable(v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if v is None:
        return v
    try:
        json.dumps(v)
    except (TypeError, ValueError) as e:
        raise ValueError("value must be a JSON-serializable object") from e
    return v


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CreateAuditLogRequest(BaseModel):
    """
    Direct-call ingestion body. Empty action/entity_type are accepted as-is.
    merchant_id, user_id, ip_address and user_agent are overridden by call metadata headers when present.
    """

    action: str = ""
    entity_type: str = ""
    entity_id: str = ""
    details: Optional[Dict[str, Any]] = Field(None, description="Action-specific context")
    old_value: Optional[Dict[str, Any]] = Field(None, description="Snapshot before the change")
    new_value: Optional[Dict[str, Any]] = Field(None, description="Snapshot after the change")
    store_id: str = ""
    session_id: str = ""
    result: str = Field("", description="success | failure | partial; empty means success")
    error_message: str = ""
    severity: str = Field("", description="info | warning | critical; empty means info")
    source_service: str = ""
    correlation_id: str = ""
    duration_ms: int = 0
    merchant_id: str = ""
    user_id: str = ""
    ip_address: str = ""
    user_agent: str = ""

    @field_validator("details", "old_value", "new_value")
    @classmethod
    def mapping_must_be_json_serializable(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return _ensure_json_serializable(v)


# ---------------------------------------------------------------------------
# Stream envelope: {event_id, event_type, source_service, timestamp, payload}
# ---------------------------------------------------------------------------

class AuditEventPayload(BaseModel):
    """Audit data carried inside a stream envelope. JSON null on a string field reads as empty."""

    merchant_id: str = ""
    user_id: str = ""
    action: str = ""
    entity_type: str = ""
    entity_id: str = ""
    details: Optional[Dict[str, Any]] = None
    ip_address: str = ""
    user_agent: str = ""
    store_id: str = ""
    session_id: str = ""
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    result: str = ""
    error_message: str = ""
    severity: str = ""
    # Accepted but never persisted: the envelope's source_service wins.
    source_service: Optional[str] = None
    correlation_id: str = ""
    duration_ms: int = 0

    @field_validator(
        "merchant_id",
        "user_id",
        "action",
        "entity_type",
        "entity_id",
        "ip_address",
        "user_agent",
        "store_id",
        "session_id",
        "result",
        "error_message",
        "severity",
        "correlation_id",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("duration_ms", mode="before")
    @classmethod
    def null_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class AuditEventEnvelope(BaseModel):
    """Outer wrapper of a stream-delivered audit event."""

    event_id: str = ""
    event_type: str = ""
    source_service: str = ""
    timestamp: Optional[datetime] = Field(None, description="RFC3339 time the producer emitted the event")
    payload: AuditEventPayload = Field(default_factory=AuditEventPayload)

    @field_validator("event_id", "event_type", "source_service", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("payload", mode="before")
    @classmethod
    def null_payload_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class CreateAuditLogResponse(BaseModel):
    id: str


class AuditLogResponse(BaseModel):
    """One persisted audit record."""

    id: str
    merchant_id: str
    user_id: str
    action: str
    entity_type: str
    entity_id: str
    details: Dict[str, Any]
    ip_address: str
    user_agent: str
    timestamp: datetime
    store_id: str
    session_id: str
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    result: AuditResult
    error_message: str
    severity: AuditSeverity
    source_service: str
    correlation_id: str
    duration_ms: int

    model_config = {"from_attributes": True}


class ListAuditLogsResponse(BaseModel):
    """A page of records, most recent first, with the total matching count."""

    logs: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
