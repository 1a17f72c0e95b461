"""Dependency container wiring for the audit service."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from audit_service.application.audit_service import AuditService
from audit_service.application.audit_store import AuditStore
from audit_service.application.stream_consumer import AuditStreamConsumer
from audit_service.config.settings import AppSettings, get_settings
from audit_service.infrastructure.database.audit_store_db import DbAuditStore
from audit_service.infrastructure.database.session import (
    build_engine,
    build_session_factory,
    create_schema,
    ping,
)
from audit_service.infrastructure.messaging.rabbitmq_consumer import RabbitMQStreamReader


@dataclass
class AppContainer:
    """Holds process-wide dependencies. Built once at startup, closed once at shutdown."""

    settings: AppSettings
    engine: AsyncEngine
    store: AuditStore
    audit_service: AuditService
    stream_consumer: Optional[AuditStreamConsumer]
    stream_reader: Optional[RabbitMQStreamReader]

    async def startup(self) -> None:
        logger = logging.getLogger(__name__)
        if self.settings.database_create_schema:
            await create_schema(self.engine)
        if self.stream_consumer is not None:
            self.stream_consumer.start()
            logger.info(
                "stream_consumer_enabled",
                extra={
                    "exchange": self.settings.audit_exchange,
                    "queue": self.settings.audit_queue,
                    "routing_key": self.settings.audit_routing_key,
                },
            )
        else:
            logger.warning("stream_consumer_disabled", extra={"reason": "rabbitmq_url not set"})

    async def close_resources(self) -> None:
        """Stop the consumer before closing its connection, then release the DB pool."""
        if self.stream_consumer is not None:
            await self.stream_consumer.stop()
        if self.stream_reader is not None:
            try:
                await self.stream_reader.close()
            except Exception:
                logging.getLogger(__name__).exception("stream_reader_close_failed")
        await self.engine.dispose()

    async def database_health(self) -> str:
        try:
            await ping(self.engine)
        except Exception as e:
            logging.getLogger(__name__).warning("database_ping_failed", extra={"error": str(e)})
            return "error"
        return "ok"


def build_container(settings: AppSettings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or get_settings()
    engine = build_engine(resolved_settings)
    store = DbAuditStore(build_session_factory(engine))
    audit_service = AuditService(
        store=store,
        logger=logging.getLogger("audit_service.application.audit_service"),
        max_page_size=resolved_settings.max_page_size,
    )

    stream_reader: Optional[RabbitMQStreamReader] = None
    stream_consumer: Optional[AuditStreamConsumer] = None
    if resolved_settings.stream_enabled:
        stream_reader = RabbitMQStreamReader(
            url=resolved_settings.rabbitmq_url,
            exchange_name=resolved_settings.audit_exchange,
            queue_name=resolved_settings.audit_queue,
            routing_key=resolved_settings.audit_routing_key,
            prefetch_count=resolved_settings.consumer_prefetch,
        )
        stream_consumer = AuditStreamConsumer(
            reader=stream_reader,
            service=audit_service,
            logger=logging.getLogger("audit_service.application.stream_consumer"),
            backoff_seconds=resolved_settings.consumer_backoff_seconds,
        )

    return AppContainer(
        settings=resolved_settings,
        engine=engine,
        store=store,
        audit_service=audit_service,
        stream_consumer=stream_consumer,
        stream_reader=stream_reader,
    )
