# audit_service/infrastructure/database/models.py

from sqlalchemy import JSON, BigInteger, Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from audit_service.infrastructure.database.session import Base

JsonColumnType = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """ORM row for one audit record. Insert-only: nothing updates or deletes these rows."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_merchant_timestamp", "merchant_id", "timestamp"),
    )

    id = Column(String(64), primary_key=True)

    merchant_id = Column(String, nullable=False, default="")
    user_id = Column(String, nullable=False, default="")
    action = Column(String, nullable=False, default="", index=True)
    entity_type = Column(String, nullable=False, default="", index=True)
    entity_id = Column(String, nullable=False, default="", index=True)
    details = Column(JsonColumnType, nullable=False, default=dict)
    ip_address = Column(String, nullable=False, default="")
    user_agent = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    store_id = Column(String, nullable=False, default="")
    session_id = Column(String, nullable=False, default="")
    old_value = Column(JsonColumnType, nullable=True)
    new_value = Column(JsonColumnType, nullable=True)
    result = Column(String(16), nullable=False, default="success")
    error_message = Column(Text, nullable=False, default="")
    severity = Column(String(16), nullable=False, default="info")
    source_service = Column(String, nullable=False, default="")
    correlation_id = Column(String, nullable=False, default="", index=True)
    duration_ms = Column(BigInteger, nullable=False, default=0)
