# audit_service/infrastructure/messaging/rabbitmq_consumer.py

import logging
from typing import Optional

import aio_pika
from aio_pika.abc import (
    AbstractIncomingMessage,
    AbstractQueueIterator,
    AbstractRobustConnection,
)

from audit_service.application.exceptions import StreamReadError

logger = logging.getLogger(__name__)


class RabbitMQStreamReader:
    """
    Reads audit envelopes from a durable queue bound to the audit topic exchange.
    Every replica shares the same queue, so each message goes to one consumer.
    Messages are acked as soon as they are read (at-most-once).
    Connects lazily, so a broker that is down at startup shows up as read errors, not a crash.
    """

    def __init__(
        self,
        url: str,
        exchange_name: str,
        queue_name: str,
        routing_key: str = "#",
        prefetch_count: int = 10,
    ) -> None:
        self._url = url
        self._exchange_name = exchange_name
        self._queue_name = queue_name
        self._routing_key = routing_key
        self._prefetch_count = prefetch_count
        self._connection: Optional[AbstractRobustConnection] = None
        self._iterator: Optional[AbstractQueueIterator] = None

    async def connect(self) -> None:
        self._connection = await aio_pika.connect_robust(self._url)
        channel = await self._connection.channel()
        await channel.set_qos(prefetch_count=self._prefetch_count)

        exchange = await channel.declare_exchange(
            self._exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )
        queue = await channel.declare_queue(self._queue_name, durable=True)
        await queue.bind(exchange, routing_key=self._routing_key)
        self._iterator = queue.iterator()
        logger.info(
            "stream_reader_connected",
            extra={"exchange": self._exchange_name, "queue": self._queue_name},
        )

    async def read_message(self) -> bytes:
        try:
            if self._iterator is None:
                await self.connect()
            message: AbstractIncomingMessage = await self._iterator.__anext__()
            await message.ack()
        except StopAsyncIteration as e:
            await self._reset()
            raise StreamReadError("Queue iterator closed") from e
        except Exception as e:
            await self._reset()
            raise StreamReadError(f"Read failed: {e}") from e
        return message.body

    async def close(self) -> None:
        iterator, connection = self._iterator, self._connection
        self._iterator = None
        self._connection = None
        if iterator is not None:
            await iterator.close()
        if connection is not None:
            await connection.close()

    async def _reset(self) -> None:
        """Drop the current connection so the next read reconnects."""
        try:
            await self.close()
        except Exception as e:
            logger.warning("stream_reader_close_failed", extra={"error": str(e)})
