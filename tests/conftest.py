"""Shared fixtures: in-memory audit store, deterministic clock and id generator."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from audit_service.application.audit_store import AuditPage
from audit_service.domain.models.audit_query import StoreQuery
from audit_service.domain.models.audit_record import AuditRecord, AuditRecordFactory

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryAuditStore:
    """In-memory AuditStore for unit tests. Same ordering and filter rules as the DB store."""

    def __init__(self) -> None:
        self.records: List[AuditRecord] = []

    async def insert(self, record: AuditRecord) -> None:
        self.records.append(record)

    async def find_filtered(self, query: StoreQuery) -> AuditPage:
        matched = [r for r in self.records if _matches(r, query)]
        matched.sort(key=lambda r: (r.timestamp, r.id), reverse=True)
        end = None if query.limit is None else query.skip + query.limit
        return AuditPage(records=matched[query.skip:end], total=len(matched))


def _matches(record: AuditRecord, query: StoreQuery) -> bool:
    for name, value in query.filters.items():
        if getattr(record, name) != value:
            return False
    if query.start_date is not None and record.timestamp < query.start_date:
        return False
    if query.end_date is not None and record.timestamp > query.end_date:
        return False
    return True


class StepClock:
    """Returns BASE_TIME, then one step later on every call."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)) -> None:
        self._next = start
        self._step = step

    def __call__(self) -> datetime:
        now = self._next
        self._next = now + self._step
        return now


def sequential_ids(prefix: str = "audit"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter):04d}"


@pytest.fixture
def fake_store():
    return InMemoryAuditStore()


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def record_factory(step_clock):
    return AuditRecordFactory(id_generator=sequential_ids(), clock=step_clock)
