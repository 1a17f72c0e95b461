"""Schema tests: stream envelope parsing and request defaults."""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from audit_service.domain.schemas.audit import AuditEventEnvelope, CreateAuditLogRequest


def test_envelope_parses_full_message():
    raw = json.dumps(
        {
            "event_id": "evt-1",
            "event_type": "audit.log",
            "source_service": "order-service",
            "timestamp": "2024-06-01T10:00:00Z",
            "payload": {
                "merchant_id": "m1",
                "user_id": "u1",
                "action": "order.cancel",
                "entity_type": "order",
                "entity_id": "o-7",
                "details": {"reason": "customer", "items": [1, 2], "refund": True},
                "old_value": {"status": "open"},
                "new_value": {"status": "cancelled"},
                "severity": "warning",
                "duration_ms": 42,
            },
        }
    )
    envelope = AuditEventEnvelope.model_validate_json(raw)
    assert envelope.source_service == "order-service"
    assert envelope.timestamp == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    assert envelope.payload.details == {"reason": "customer", "items": [1, 2], "refund": True}
    assert envelope.payload.new_value == {"status": "cancelled"}
    assert envelope.payload.duration_ms == 42
    assert envelope.payload.result == ""


def test_envelope_nulls_read_as_empty():
    raw = json.dumps(
        {
            "event_id": None,
            "source_service": "pos",
            "payload": {"action": "login", "user_id": None, "severity": None, "duration_ms": None},
        }
    )
    envelope = AuditEventEnvelope.model_validate_json(raw)
    assert envelope.event_id == ""
    assert envelope.payload.user_id == ""
    assert envelope.payload.severity == ""
    assert envelope.payload.duration_ms == 0


def test_envelope_without_payload_gets_empty_payload():
    envelope = AuditEventEnvelope.model_validate_json(b'{"source_service": "pos"}')
    assert envelope.payload.action == ""
    assert envelope.payload.details is None


def test_envelope_unknown_fields_ignored():
    envelope = AuditEventEnvelope.model_validate_json(b'{"source_service": "pos", "extra": 1}')
    assert envelope.source_service == "pos"


def test_envelope_bad_timestamp_rejected():
    with pytest.raises(ValidationError):
        AuditEventEnvelope.model_validate_json(b'{"timestamp": "yesterday"}')


def test_envelope_payload_of_wrong_type_rejected():
    with pytest.raises(ValidationError):
        AuditEventEnvelope.model_validate_json(b'{"payload": "not an object"}')


def test_create_request_defaults_are_empty():
    body = CreateAuditLogRequest()
    assert body.action == ""
    assert body.result == ""
    assert body.severity == ""
    assert body.details is None
    assert body.duration_ms == 0


def test_create_request_rejects_non_object_details():
    with pytest.raises(ValidationError):
        CreateAuditLogRequest.model_validate({"details": ["a", "b"]})
