"""
Ingestion normalizer: map the two producer shapes onto NormalizedAuditInput.

Direct calls contribute actor/provenance from call-scoped metadata; stream events carry them
in the payload while source_service always comes from the envelope.
"""

from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from audit_service.application.exceptions import MalformedEventError
from audit_service.domain.models.audit_record import NormalizedAuditInput
from audit_service.domain.schemas.audit import AuditEventEnvelope, CreateAuditLogRequest


@dataclass(frozen=True)
class CallContext:
    """Actor/provenance taken from transport metadata. Empty string means the header was absent."""

    merchant_id: str = ""
    user_id: str = ""
    ip_address: str = ""
    user_agent: str = ""


def input_from_request(body: CreateAuditLogRequest, context: CallContext) -> NormalizedAuditInput:
    """Direct-call path. Metadata values override body values; absent metadata keeps the body value."""
    return NormalizedAuditInput(
        merchant_id=context.merchant_id or body.merchant_id,
        user_id=context.user_id or body.user_id,
        action=body.action,
        entity_type=body.entity_type,
        entity_id=body.entity_id,
        details=body.details,
        ip_address=context.ip_address or body.ip_address,
        user_agent=context.user_agent or body.user_agent,
        store_id=body.store_id,
        session_id=body.session_id,
        old_value=body.old_value,
        new_value=body.new_value,
        result=body.result,
        error_message=body.error_message,
        severity=body.severity,
        source_service=body.source_service,
        correlation_id=body.correlation_id,
        duration_ms=body.duration_ms,
    )


def decode_audit_event(raw: Union[bytes, str]) -> AuditEventEnvelope:
    """Parse a stream message. Raises MalformedEventError on invalid JSON or a wrong shape."""
    try:
        return AuditEventEnvelope.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid audit event envelope: {e.error_count()} error(s)") from e


def input_from_envelope(envelope: AuditEventEnvelope) -> NormalizedAuditInput:
    """Stream path. payload.source_service is ignored in favour of the envelope's."""
    payload = envelope.payload
    return NormalizedAuditInput(
        merchant_id=payload.merchant_id,
        user_id=payload.user_id,
        action=payload.action,
        entity_type=payload.entity_type,
        entity_id=payload.entity_id,
        details=payload.details,
        ip_address=payload.ip_address,
        user_agent=payload.user_agent,
        store_id=payload.store_id,
        session_id=payload.session_id,
        old_value=payload.old_value,
        new_value=payload.new_value,
        result=payload.result,
        error_message=payload.error_message,
        severity=payload.severity,
        source_service=envelope.source_service,
        correlation_id=payload.correlation_id,
        duration_ms=payload.duration_ms,
    )
