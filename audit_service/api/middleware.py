"""API middleware: correlation ID, call context metadata, request logging."""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from audit_service.application.ingestion import CallContext
from audit_service.core.context import correlation_id_ctx, merchant_id_ctx

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
MERCHANT_HEADER = "X-Merchant-ID"
USER_HEADER = "X-User-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"
USER_AGENT_HEADER = "User-Agent"


def _header(request: Request, name: str) -> str:
    return (request.headers.get(name) or "").strip()


def call_context_from_headers(request: Request) -> CallContext:
    """Missing headers become empty strings. X-Forwarded-For keeps only the originating client."""
    forwarded_for = _header(request, FORWARDED_FOR_HEADER)
    return CallContext(
        merchant_id=_header(request, MERCHANT_HEADER),
        user_id=_header(request, USER_HEADER),
        ip_address=forwarded_for.split(",")[0].strip(),
        user_agent=_header(request, USER_AGENT_HEADER),
    )


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class CallContextMiddleware(BaseHTTPMiddleware):
    """Parse actor/provenance headers into request.state.call_context. Nothing here is required."""

    async def dispatch(self, request: Request, call_next) -> Response:
        context = call_context_from_headers(request)
        request.state.call_context = context
        merchant_id_ctx.set(context.merchant_id or None)
        return await call_next(request)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """After response: one structured line per request (path, method, status_code, duration)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response
