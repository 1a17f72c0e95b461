"""
Stream consumer loop: read one message at a time, normalize, persist, repeat.

Runs as one background asyncio task beside the HTTP path. Read failures back off for a fixed
interval and retry forever; malformed or unstorable messages are logged and dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol

from audit_service.application.audit_service import AuditService
from audit_service.application.exceptions import ApplicationError, MalformedEventError
from audit_service.application.ingestion import decode_audit_event, input_from_envelope
from audit_service.domain.exceptions import DomainError

DEFAULT_BACKOFF_SECONDS = 1.0
RAW_LOG_LIMIT = 512


class StreamReader(Protocol):
    """Transport for the audit event stream. Offsets/acks are the transport's business."""

    async def read_message(self) -> bytes:
        """Block until the next message body is available. Raise on transport failure."""
        ...

    async def close(self) -> None:
        """Release the underlying connection."""
        ...


class ConsumerState(str, Enum):
    """Lifecycle of the consumer loop."""

    IDLE = "idle"  # Constructed, not started
    RUNNING = "running"
    BACKOFF = "backoff"  # Waiting after a read failure
    STOPPED = "stopped"  # Terminal


class AuditStreamConsumer:
    """
    Owns the read loop. stop() lets a message that was already read finish processing
    before the loop exits; cancelling the task directly aborts it mid-message.
    The reader is closed by the owner after stop() returns, never by the loop.
    """

    def __init__(
        self,
        reader: StreamReader,
        service: AuditService,
        logger: logging.Logger,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ) -> None:
        self._reader = reader
        self._service = service
        self._logger = logger
        self._backoff_seconds = backoff_seconds
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._state = ConsumerState.IDLE

    @property
    def state(self) -> ConsumerState:
        return self._state

    def start(self) -> asyncio.Task:
        """Schedule run() on the current event loop. Idempotent while the task is alive."""
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self.run(), name="audit-stream-consumer")
        return self._task

    async def stop(self, timeout: float = 10.0) -> None:
        """Signal the loop and wait for it to exit. Falls back to cancellation after timeout."""
        self._stop.set()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            self._logger.warning("stream_consumer_stop_timeout", extra={"timeout": timeout})
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

    async def run(self) -> None:
        self._state = ConsumerState.RUNNING
        self._logger.info("stream_consumer_started")
        try:
            while not self._stop.is_set():
                try:
                    raw = await self._read_or_stop()
                except Exception as e:
                    self._logger.error("stream_read_failed", extra={"error": str(e)})
                    await self._backoff()
                    continue
                if raw is None:
                    break
                await self.process_message(raw)
        finally:
            self._state = ConsumerState.STOPPED
            self._logger.info("stream_consumer_stopped")

    async def process_message(self, raw: bytes) -> Optional[str]:
        """Normalize and persist one message. Returns the record id, or None if it was dropped."""
        try:
            envelope = decode_audit_event(raw)
        except MalformedEventError as e:
            self._logger.error(
                "audit_event_malformed",
                extra={"error": e.message, "raw": _preview(raw)},
            )
            return None

        self._logger.info(
            "audit_event_processing",
            extra={
                "event_id": envelope.event_id,
                "action": envelope.payload.action,
                "source_service": envelope.source_service,
            },
        )
        try:
            record_id = await self._service.ingest(input_from_envelope(envelope))
        except (DomainError, ApplicationError) as e:
            self._logger.error(
                "audit_event_dropped",
                extra={"event_id": envelope.event_id, "error": e.message},
            )
            return None
        except Exception:
            self._logger.exception(
                "audit_event_dropped",
                extra={"event_id": envelope.event_id},
            )
            return None

        self._logger.info(
            "audit_event_stored",
            extra={"event_id": envelope.event_id, "audit_id": record_id},
        )
        return record_id

    async def _read_or_stop(self) -> Optional[bytes]:
        """Next message body, or None once stop is signalled. A message that wins the race is returned."""
        read_task = asyncio.ensure_future(self._reader.read_message())
        stop_task = asyncio.ensure_future(self._stop.wait())
        try:
            done, pending = await asyncio.wait(
                {read_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            read_task.cancel()
            stop_task.cancel()
            raise
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if read_task in done:
            return read_task.result()
        return None

    async def _backoff(self) -> None:
        self._state = ConsumerState.BACKOFF
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._backoff_seconds)
        except asyncio.TimeoutError:
            pass
        self._state = ConsumerState.RUNNING


def _preview(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else str(raw)
    return text[:RAW_LOG_LIMIT]
