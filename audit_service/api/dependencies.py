"""FastAPI dependency injection: container, AuditService, call context, settings."""

from typing import Annotated

from fastapi import Depends, Request

from audit_service.application.audit_service import AuditService
from audit_service.application.ingestion import CallContext
from audit_service.config.settings import AppSettings, get_settings
from audit_service.container import AppContainer


def get_container(request: Request) -> AppContainer:
    """Return the process-wide container built in the app lifespan."""
    return request.app.state.container


def get_audit_service(
    container: Annotated[AppContainer, Depends(get_container)],
) -> AuditService:
    return container.audit_service


def get_call_context(request: Request) -> CallContext:
    """Extract call context from request.state (set by middleware)."""
    return getattr(request.state, "call_context", None) or CallContext()


def get_app_settings() -> AppSettings:
    return get_settings()
