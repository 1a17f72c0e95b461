"""Tests for GET /health: database status, stream consumer state, correlation ID."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from audit_service.application.stream_consumer import ConsumerState


@pytest.mark.asyncio
async def test_health_ok(async_client: AsyncClient):
    r = await async_client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["environment"] == "test"
    assert "version" in data
    assert "correlation_id" in data


@pytest.mark.asyncio
async def test_health_reports_disabled_consumer(async_client: AsyncClient):
    r = await async_client.get("/health")
    assert r.json()["stream_consumer"] == "disabled"


@pytest.mark.asyncio
async def test_health_reports_consumer_state(async_client: AsyncClient, fake_container):
    consumer = MagicMock()
    consumer.state = ConsumerState.BACKOFF
    fake_container.stream_consumer = consumer

    r = await async_client.get("/health")
    assert r.json()["stream_consumer"] == "backoff"


@pytest.mark.asyncio
async def test_health_degraded_when_database_unreachable(async_client: AsyncClient, fake_container):
    fake_container.database_status = "error"
    r = await async_client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "degraded"
    assert r.json()["database"] == "error"
