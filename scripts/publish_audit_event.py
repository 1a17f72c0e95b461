# scripts/publish_audit_event.py
import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from audit_service.config.settings import get_settings
from audit_service.domain.schemas.audit import AuditEventPayload
from audit_service.infrastructure.messaging.rabbitmq_publisher import AuditEventPublisher


async def publish_sample():
    settings = get_settings()
    if not settings.stream_enabled:
        print("RABBITMQ_URL is not set")
        return

    publisher = AuditEventPublisher(settings.rabbitmq_url, settings.audit_exchange)
    try:
        envelope = await publisher.publish(
            AuditEventPayload(
                merchant_id="merchant-1",
                user_id="user-1",
                action="product.update",
                entity_type="product",
                entity_id="sku-123",
                old_value={"price": 10},
                new_value={"price": 12},
                severity="warning",
            ),
            source_service="catalog-service",
        )
    finally:
        await publisher.close()

    print("Published", envelope.event_id)


asyncio.run(publish_sample())
