"""Canonical audit record model. Pure business semantics, no ORM or infrastructure."""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from audit_service.domain.exceptions import InvalidAuditValueError

# JSON-like mapping: string keys, values are str/int/float/bool/None or nested lists/mappings.
JsonObject = Dict[str, Any]

IdGenerator = Callable[[], str]
Clock = Callable[[], datetime]


class AuditResult(str, Enum):
    """Outcome of the audited action."""

    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL = "partial"


class AuditSeverity(str, Enum):
    """How much attention the audited action deserves."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


_E = TypeVar("_E", AuditResult, AuditSeverity)


def _coerce_enum(enum_cls: Type[_E], value: Optional[str], default: _E, field_name: str) -> _E:
    """Empty means default. Otherwise matched case-insensitively against the member values."""
    normalized = (value or "").strip().lower()
    if not normalized:
        return default
    try:
        return enum_cls(normalized)
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidAuditValueError(
            f"{field_name} must be one of [{allowed}], got {value!r}"
        ) from e


def coerce_result(value: Optional[str]) -> AuditResult:
    return _coerce_enum(AuditResult, value, AuditResult.SUCCESS, "result")


def coerce_severity(value: Optional[str]) -> AuditSeverity:
    return _coerce_enum(AuditSeverity, value, AuditSeverity.INFO, "severity")


def new_record_id() -> str:
    """Default identifier generator: random UUID4 string."""
    return str(uuid.uuid4())


class MonotonicUtcClock:
    """
    UTC wall clock that never goes backwards.
    If the system clock steps back, the last returned instant is returned again.
    Safe to share between the HTTP path and the stream consumer.
    """

    def __init__(self, source: Optional[Clock] = None) -> None:
        self._source = source or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._last: Optional[datetime] = None

    def __call__(self) -> datetime:
        with self._lock:
            now = self._source()
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            if self._last is not None and now < self._last:
                now = self._last
            self._last = now
            return now


@dataclass(frozen=True)
class NormalizedAuditInput:
    """
    Raw audit fields as delivered by either ingestion path, before ids, timestamps
    and defaults are assigned. Empty strings mean "not provided".
    """

    merchant_id: str = ""
    user_id: str = ""
    action: str = ""
    entity_type: str = ""
    entity_id: str = ""
    details: Optional[JsonObject] = None
    ip_address: str = ""
    user_agent: str = ""
    store_id: str = ""
    session_id: str = ""
    old_value: Optional[JsonObject] = None
    new_value: Optional[JsonObject] = None
    result: str = ""
    error_message: str = ""
    severity: str = ""
    source_service: str = ""
    correlation_id: str = ""
    duration_ms: int = 0


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: who did what to which entity, when, with what outcome.
    id and timestamp are always assigned by AuditRecordFactory, never by the caller.
    """

    id: str
    merchant_id: str
    user_id: str
    action: str
    entity_type: str
    entity_id: str
    details: JsonObject
    ip_address: str
    user_agent: str
    timestamp: datetime
    store_id: str = ""
    session_id: str = ""
    old_value: Optional[JsonObject] = None
    new_value: Optional[JsonObject] = None
    result: AuditResult = AuditResult.SUCCESS
    error_message: str = ""
    severity: AuditSeverity = AuditSeverity.INFO
    source_service: str = ""
    correlation_id: str = ""
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON output."""
        return {
            "id": self.id,
            "merchant_id": self.merchant_id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "details": self.details,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp.isoformat(),
            "store_id": self.store_id,
            "session_id": self.session_id,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "result": self.result.value,
            "error_message": self.error_message,
            "severity": self.severity.value,
            "source_service": self.source_service,
            "correlation_id": self.correlation_id,
            "duration_ms": self.duration_ms,
        }


@dataclass
class AuditRecordFactory:
    """Builds canonical records. Identifier generation and clock are injected for testability."""

    id_generator: IdGenerator = new_record_id
    clock: Clock = field(default_factory=MonotonicUtcClock)

    def create(self, data: NormalizedAuditInput) -> AuditRecord:
        """
        Assign id and timestamp, default result/severity, copy mappings.
        Raises InvalidAuditValueError for a non-empty result/severity outside its enumeration.
        Empty action/entity_type are kept as-is.
        """
        result = coerce_result(data.result)
        severity = coerce_severity(data.severity)
        return AuditRecord(
            id=self.id_generator(),
            merchant_id=data.merchant_id,
            user_id=data.user_id,
            action=data.action,
            entity_type=data.entity_type,
            entity_id=data.entity_id,
            details=dict(data.details) if data.details else {},
            ip_address=data.ip_address,
            user_agent=data.user_agent,
            timestamp=self.clock(),
            store_id=data.store_id,
            session_id=data.session_id,
            old_value=dict(data.old_value) if data.old_value is not None else None,
            new_value=dict(data.new_value) if data.new_value is not None else None,
            result=result,
            error_message=data.error_message,
            severity=severity,
            source_service=data.source_service,
            correlation_id=data.correlation_id,
            duration_ms=data.duration_ms,
        )
