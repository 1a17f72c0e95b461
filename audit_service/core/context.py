# audit_service/core/context.py

import contextvars

correlation_id_ctx = contextvars.ContextVar("correlation_id", default=None)
merchant_id_ctx = contextvars.ContextVar("merchant_id", default=None)
