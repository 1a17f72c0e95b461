"""Audit logs API router: POST /audit-logs (ingest), GET /audit-logs (filtered, paginated)."""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from audit_service.api.dependencies import get_app_settings, get_audit_service, get_call_context
from audit_service.application.audit_service import AuditService
from audit_service.application.exceptions import StoreError
from audit_service.application.ingestion import CallContext, input_from_request
from audit_service.config.settings import AppSettings
from audit_service.domain.models.audit_query import FilterCriteria
from audit_service.domain.schemas.audit import (
    AuditLogResponse,
    CreateAuditLogRequest,
    CreateAuditLogResponse,
    ListAuditLogsResponse,
)

router = APIRouter()


@router.post("", status_code=201, response_model=CreateAuditLogResponse)
async def create_audit_log(
    body: CreateAuditLogRequest,
    call_context: Annotated[CallContext, Depends(get_call_context)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)],
):
    """Record one audit event. Actor/provenance headers override the matching body fields."""
    try:
        record_id = await audit_service.ingest(input_from_request(body, call_context))
    except StoreError:
        return JSONResponse(status_code=500, content={"detail": "failed to create audit log"})
    return CreateAuditLogResponse(id=record_id)


@router.get("", response_model=ListAuditLogsResponse)
async def list_audit_logs(
    call_context: Annotated[CallContext, Depends(get_call_context)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    merchant_id: str = "",
    user_id: str = "",
    entity_type: str = "",
    entity_id: str = "",
    action: str = "",
    store_id: str = "",
    severity: str = "",
    result: str = "",
    source_service: str = "",
    correlation_id: str = "",
    start_date: Annotated[Optional[datetime], Query(description="RFC3339, inclusive")] = None,
    end_date: Annotated[Optional[datetime], Query(description="RFC3339, inclusive")] = None,
    page: int = 1,
    page_size: Optional[int] = None,
):
    """List audit logs, most recent first. X-Merchant-ID, when sent, scopes the query to that merchant."""
    effective_page_size = settings.default_page_size if page_size is None else page_size
    criteria = FilterCriteria(
        merchant_id=call_context.merchant_id or merchant_id,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        store_id=store_id,
        severity=severity,
        result=result,
        source_service=source_service,
        correlation_id=correlation_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=effective_page_size,
    )
    try:
        audit_page = await audit_service.list_audit_logs(criteria)
    except StoreError:
        return JSONResponse(status_code=500, content={"detail": "failed to list audit logs"})

    return ListAuditLogsResponse(
        logs=[AuditLogResponse.model_validate(r) for r in audit_page.records],
        total=audit_page.total,
        page=audit_page.page,
        page_size=audit_page.page_size,
    )
