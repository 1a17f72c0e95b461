# audit_service/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from audit_service.api.middleware import (
    CallContextMiddleware,
    CorrelationIdMiddleware,
    RequestLogMiddleware,
)
from audit_service.api.routers import audit_logs, health
from audit_service.application.exceptions import ApplicationError
from audit_service.config.logging import configure_logging
from audit_service.config.settings import get_settings
from audit_service.container import build_container
from audit_service.domain.exceptions import DomainError, DomainValidationError

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The ASGI server drains in-flight requests before this shutdown half runs.
    container = build_container(settings)
    app.state.container = container
    await container.startup()
    logger.info(
        "audit_service_started",
        extra={"environment": settings.environment, "version": settings.version},
    )
    try:
        yield
    finally:
        logger.info("audit_service_stopping")
        await container.close_resources()
        logger.info("audit_service_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> CallContext -> RequestLog.
app.add_middleware(RequestLogMiddleware)
app.add_middleware(CallContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /audit-logs
app.include_router(health.router)
app.include_router(audit_logs.router, prefix="/audit-logs")
