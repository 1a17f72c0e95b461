"""DB-backed audit store. Persists records to the audit_logs table."""

from datetime import timezone
from typing import Any, List

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from audit_service.application.audit_store import AuditPage
from audit_service.application.exceptions import StoreError
from audit_service.domain.models.audit_query import StoreQuery
from audit_service.domain.models.audit_record import AuditRecord, AuditResult, AuditSeverity
from audit_service.infrastructure.database.models import AuditLog


def _to_row(record: AuditRecord) -> AuditLog:
    return AuditLog(
        id=record.id,
        merchant_id=record.merchant_id,
        user_id=record.user_id,
        action=record.action,
        entity_type=record.entity_type,
        entity_id=record.entity_id,
        details=record.details,
        ip_address=record.ip_address,
        user_agent=record.user_agent,
        timestamp=record.timestamp,
        store_id=record.store_id,
        session_id=record.session_id,
        old_value=record.old_value,
        new_value=record.new_value,
        result=record.result.value,
        error_message=record.error_message,
        severity=record.severity.value,
        source_service=record.source_service,
        correlation_id=record.correlation_id,
        duration_ms=record.duration_ms,
    )


def _to_record(row: AuditLog) -> AuditRecord:
    timestamp = row.timestamp
    if timestamp is not None and timestamp.tzinfo is None:
        # Drivers without timezone support hand back naive UTC.
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return AuditRecord(
        id=row.id,
        merchant_id=row.merchant_id,
        user_id=row.user_id,
        action=row.action,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        details=row.details or {},
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        timestamp=timestamp,
        store_id=row.store_id,
        session_id=row.session_id,
        old_value=row.old_value,
        new_value=row.new_value,
        result=AuditResult(row.result),
        error_message=row.error_message,
        severity=AuditSeverity(row.severity),
        source_service=row.source_service,
        correlation_id=row.correlation_id,
        duration_ms=row.duration_ms or 0,
    )


def _where(query: StoreQuery) -> List[Any]:
    conditions: List[Any] = [
        getattr(AuditLog, name) == value for name, value in query.filters.items()
    ]
    if query.start_date is not None:
        conditions.append(AuditLog.timestamp >= query.start_date)
    if query.end_date is not None:
        conditions.append(AuditLog.timestamp <= query.end_date)
    return conditions


class DbAuditStore:
    """
    SQLAlchemy implementation of AuditStore. Each call opens its own session from the shared
    factory, so concurrent inserts and finds need no locking here.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, record: AuditRecord) -> None:
        """Single-row insert, committed on its own."""
        try:
            async with self._session_factory() as session:
                session.add(_to_row(record))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Insert failed: {e}") from e

    async def find_filtered(self, query: StoreQuery) -> AuditPage:
        """Page query plus COUNT(*) over the same filter, in two statements (no snapshot between them)."""
        conditions = _where(query)
        count_conditions = _where(query.for_count())

        stmt = select(AuditLog)
        count_stmt = select(func.count()).select_from(AuditLog)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        if count_conditions:
            count_stmt = count_stmt.where(and_(*count_conditions))
        stmt = stmt.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(query.skip)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
                total = (await session.execute(count_stmt)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"Query failed: {e}") from e

        return AuditPage(records=[_to_record(r) for r in rows], total=int(total))
