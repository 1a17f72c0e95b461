"""Stream consumer tests: processing, malformed input, read failures, backoff, shutdown."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from audit_service.application.audit_service import AuditService
from audit_service.application.exceptions import StreamReadError
from audit_service.application.stream_consumer import AuditStreamConsumer, ConsumerState


class QueueReader:
    """StreamReader fed from a list; Exception items are raised instead of returned."""

    def __init__(self, items=()):
        self._queue: asyncio.Queue = asyncio.Queue()
        for item in items:
            self._queue.put_nowait(item)
        self.reads = 0
        self.closed = False

    async def read_message(self) -> bytes:
        item = await self._queue.get()
        self.reads += 1
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class FailingReader:
    """Every read fails."""

    def __init__(self):
        self.reads = 0

    async def read_message(self) -> bytes:
        self.reads += 1
        raise StreamReadError("broker unreachable")

    async def close(self) -> None:
        pass


def _event(action: str = "login", source_service: str = "S1", **payload) -> bytes:
    body = {"action": action, "source_service": "from-payload", **payload}
    return json.dumps(
        {
            "event_id": f"evt-{action}",
            "event_type": "audit.log",
            "source_service": source_service,
            "timestamp": "2024-06-01T10:00:00Z",
            "payload": body,
        }
    ).encode()


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def audit_service(fake_store, record_factory, logger):
    return AuditService(store=fake_store, logger=logger, record_factory=record_factory)


def _messages_logged(logger, level: str):
    return [c.args[0] for c in getattr(logger, level).call_args_list]


# ---------- process_message ----------


async def test_process_message_persists_with_envelope_source(audit_service, fake_store, logger):
    consumer = AuditStreamConsumer(reader=QueueReader(), service=audit_service, logger=logger)
    record_id = await consumer.process_message(_event(source_service="S1"))

    assert record_id is not None
    assert len(fake_store.records) == 1
    assert fake_store.records[0].source_service == "S1"
    assert fake_store.records[0].result.value == "success"


async def test_process_message_drops_non_json(audit_service, fake_store, logger):
    consumer = AuditStreamConsumer(reader=QueueReader(), service=audit_service, logger=logger)
    assert await consumer.process_message(b"\xff\xfe garbage") is None
    assert fake_store.records == []
    assert "audit_event_malformed" in _messages_logged(logger, "error")


async def test_process_message_drops_invalid_severity(audit_service, fake_store, logger):
    consumer = AuditStreamConsumer(reader=QueueReader(), service=audit_service, logger=logger)
    assert await consumer.process_message(_event(severity="apocalyptic")) is None
    assert fake_store.records == []
    assert "audit_event_dropped" in _messages_logged(logger, "error")


async def test_process_message_accepts_upper_case_severity(audit_service, fake_store, logger):
    consumer = AuditStreamConsumer(reader=QueueReader(), service=audit_service, logger=logger)
    assert await consumer.process_message(_event(severity="INFO", result="Partial")) is not None
    assert fake_store.records[0].severity.value == "info"
    assert fake_store.records[0].result.value == "partial"


async def test_process_message_drops_on_store_failure(record_factory, logger):
    store = MagicMock()

    async def broken_insert(record):
        raise RuntimeError("db down")

    store.insert = broken_insert
    service = AuditService(store=store, logger=logger, record_factory=record_factory)
    consumer = AuditStreamConsumer(reader=QueueReader(), service=service, logger=logger)

    assert await consumer.process_message(_event()) is None
    assert "audit_event_dropped" in _messages_logged(logger, "error")


# ---------- run loop ----------


async def test_loop_skips_malformed_and_keeps_running(audit_service, fake_store, logger):
    reader = QueueReader([b"not json at all", _event("after-garbage")])
    consumer = AuditStreamConsumer(reader=reader, service=audit_service, logger=logger)
    consumer.start()

    await _wait_for(lambda: len(fake_store.records) == 1)
    assert fake_store.records[0].action == "after-garbage"
    assert consumer.state == ConsumerState.RUNNING

    await consumer.stop(timeout=1)
    assert consumer.state == ConsumerState.STOPPED


async def test_loop_preserves_delivery_order(audit_service, fake_store, logger):
    reader = QueueReader([_event("first"), _event("second"), _event("third")])
    consumer = AuditStreamConsumer(reader=reader, service=audit_service, logger=logger)
    consumer.start()

    await _wait_for(lambda: len(fake_store.records) == 3)
    await consumer.stop(timeout=1)
    assert [r.action for r in fake_store.records] == ["first", "second", "third"]


async def test_read_error_backs_off_then_recovers(audit_service, fake_store, logger):
    reader = QueueReader([StreamReadError("connection lost"), _event("recovered")])
    consumer = AuditStreamConsumer(
        reader=reader, service=audit_service, logger=logger, backoff_seconds=0.01
    )
    consumer.start()

    await _wait_for(lambda: len(fake_store.records) == 1)
    await consumer.stop(timeout=1)
    assert "stream_read_failed" in _messages_logged(logger, "error")
    assert reader.reads == 2


async def test_read_errors_retry_without_bound(audit_service, logger):
    reader = FailingReader()
    consumer = AuditStreamConsumer(
        reader=reader, service=audit_service, logger=logger, backoff_seconds=0.001
    )
    consumer.start()
    await _wait_for(lambda: reader.reads >= 5)
    assert consumer.state in (ConsumerState.RUNNING, ConsumerState.BACKOFF)
    await consumer.stop(timeout=1)
    assert consumer.state == ConsumerState.STOPPED


async def test_stop_interrupts_backoff_promptly(audit_service, logger):
    consumer = AuditStreamConsumer(
        reader=FailingReader(), service=audit_service, logger=logger, backoff_seconds=30
    )
    task = consumer.start()
    await _wait_for(lambda: consumer.state == ConsumerState.BACKOFF)

    await asyncio.wait_for(consumer.stop(timeout=5), timeout=1)
    assert task.done()
    assert consumer.state == ConsumerState.STOPPED


async def test_stop_while_waiting_for_message(audit_service, logger):
    reader = QueueReader()
    consumer = AuditStreamConsumer(reader=reader, service=audit_service, logger=logger)
    task = consumer.start()
    await asyncio.sleep(0.05)
    assert consumer.state == ConsumerState.RUNNING

    await consumer.stop(timeout=1)
    assert task.done()
    assert consumer.state == ConsumerState.STOPPED
    # Closing the connection is left to the owner.
    assert reader.closed is False


async def test_in_flight_message_finishes_before_stop(record_factory, logger):
    gate = asyncio.Event()
    stored = []

    class SlowStore:
        async def insert(self, record):
            await gate.wait()
            stored.append(record)

        async def find_filtered(self, query):
            raise NotImplementedError

    service = AuditService(store=SlowStore(), logger=logger, record_factory=record_factory)
    reader = QueueReader([_event("in-flight")])
    consumer = AuditStreamConsumer(reader=reader, service=service, logger=logger)
    consumer.start()
    await _wait_for(lambda: reader.reads == 1)

    stopping = asyncio.create_task(consumer.stop(timeout=5))
    await asyncio.sleep(0.05)
    assert not stopping.done()

    gate.set()
    await asyncio.wait_for(stopping, timeout=1)
    assert [r.action for r in stored] == ["in-flight"]
    assert consumer.state == ConsumerState.STOPPED


async def test_stop_before_start_is_noop(audit_service, logger):
    consumer = AuditStreamConsumer(reader=QueueReader(), service=audit_service, logger=logger)
    await consumer.stop()
    assert consumer.state == ConsumerState.IDLE
