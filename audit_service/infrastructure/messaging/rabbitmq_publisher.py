# audit_service/infrastructure/messaging/rabbitmq_publisher.py

import uuid
from datetime import datetime, timezone
from typing import Optional

import aio_pika

from audit_service.domain.schemas.audit import AuditEventEnvelope, AuditEventPayload

DEFAULT_EVENT_TYPE = "audit.log"


class AuditEventPublisher:
    """Producer-side helper: wraps a payload in an envelope and publishes it to the audit exchange."""

    def __init__(self, url: str, exchange_name: str) -> None:
        self._url = url
        self._exchange_name = exchange_name
        self._connection = None
        self._channel = None

    async def connect(self):
        self._connection = await aio_pika.connect_robust(self._url)
        self._channel = await self._connection.channel()

    async def publish(
        self,
        payload: AuditEventPayload,
        source_service: str,
        event_type: str = DEFAULT_EVENT_TYPE,
        event_id: Optional[str] = None,
    ) -> AuditEventEnvelope:

        if not self._channel:
            await self.connect()

        exchange = await self._channel.declare_exchange(
            self._exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )

        envelope = AuditEventEnvelope(
            event_id=event_id or str(uuid.uuid4()),
            event_type=event_type,
            source_service=source_service,
            timestamp=datetime.now(timezone.utc),
            payload=payload,
        )
        msg = aio_pika.Message(
            body=envelope.model_dump_json(exclude_none=True).encode(),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            message_id=envelope.event_id,
        )

        await exchange.publish(msg, routing_key=event_type)
        return envelope

    async def close(self):
        if self._connection is not None:
            await self._connection.close()
        self._connection = None
        self._channel = None
