# audit_service/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from audit_service.api.dependencies import get_container
from audit_service.container import AppContainer

router = APIRouter()


@router.get("/health")
async def health(request: Request, container: Annotated[AppContainer, Depends(get_container)]):
    """Health check: database reachability and stream consumer state."""
    settings = container.settings
    database = await container.database_health()
    consumer = container.stream_consumer
    return {
        "status": "ok" if database == "ok" else "degraded",
        "environment": settings.environment,
        "version": settings.version,
        "correlation_id": request.state.correlation_id,
        "database": database,
        "stream_consumer": consumer.state.value if consumer is not None else "disabled",
    }
