"""Run the audit service: python -m audit_service"""

import uvicorn

from audit_service.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "audit_service.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )


if __name__ == "__main__":
    main()
