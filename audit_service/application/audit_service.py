"""Audit application service. Orchestrates record creation, persistence and filtered listing."""

import dataclasses
import logging

from audit_service.application.audit_store import AuditPage, AuditStore
from audit_service.application.exceptions import StoreError
from audit_service.domain.models.audit_query import MAX_PAGE_SIZE, FilterCriteria
from audit_service.domain.models.audit_record import AuditRecordFactory, NormalizedAuditInput
from audit_service.domain.query_builder import build_store_query


class AuditService:
    """
    Application-layer orchestration only. No HTTP, no FastAPI, no direct infrastructure.
    Shared by the HTTP handlers and the stream consumer; holds no per-call state.
    """

    def __init__(
        self,
        store: AuditStore,
        logger: logging.Logger,
        record_factory: AuditRecordFactory | None = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._store = store
        self._logger = logger
        self._factory = record_factory or AuditRecordFactory()
        self._max_page_size = max_page_size

    async def ingest(self, data: NormalizedAuditInput) -> str:
        """
        Build the canonical record and insert it exactly once. Returns the new record id.
        Raises InvalidAuditValueError for an unknown result/severity and StoreError if the insert fails.
        """
        record = self._factory.create(data)
        try:
            await self._store.insert(record)
        except Exception as e:
            self._logger.error(
                "audit_log_create_failed",
                extra={
                    "audit_id": record.id,
                    "action": record.action,
                    "source_service": record.source_service,
                    "error": str(e),
                },
            )
            if isinstance(e, StoreError):
                raise
            raise StoreError(f"Insert failed: {e}") from e

        self._logger.info(
            "audit_log_created",
            extra={
                "audit_id": record.id,
                "action": record.action,
                "entity_type": record.entity_type,
                "source_service": record.source_service,
            },
        )
        return record.id

    async def list_audit_logs(self, criteria: FilterCriteria) -> AuditPage:
        """
        Filtered, paginated listing, most recent first. The returned page carries the
        page number and size actually applied. Raises InvalidPaginationError or StoreError.
        """
        query = build_store_query(criteria, max_page_size=self._max_page_size)
        try:
            page = await self._store.find_filtered(query)
        except Exception as e:
            self._logger.error(
                "audit_log_list_failed",
                extra={"filters": dict(query.filters), "error": str(e)},
            )
            if isinstance(e, StoreError):
                raise
            raise StoreError(f"Query failed: {e}") from e
        return dataclasses.replace(page, page=query.page, page_size=query.limit)
