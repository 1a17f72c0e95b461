"""Fixtures for API unit tests: fake container over the in-memory store, AsyncClient."""

import logging
from dataclasses import dataclass
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from audit_service.application.audit_service import AuditService
from audit_service.config.settings import AppSettings
from audit_service.main import app


@dataclass
class FakeContainer:
    """Stands in for AppContainer; no engine, no broker."""

    settings: AppSettings
    audit_service: AuditService
    stream_consumer: Optional[object] = None
    database_status: str = "ok"

    async def database_health(self) -> str:
        return self.database_status


@pytest.fixture
def api_settings():
    return AppSettings(environment="test", default_page_size=20, max_page_size=500)


@pytest.fixture
def audit_service(fake_store, record_factory):
    return AuditService(
        store=fake_store,
        logger=logging.getLogger("tests.audit_service"),
        record_factory=record_factory,
        max_page_size=500,
    )


@pytest.fixture
def fake_container(api_settings, audit_service):
    return FakeContainer(settings=api_settings, audit_service=audit_service)


@pytest.fixture
def app_with_overrides(fake_container, api_settings):
    """App with the container and settings overridden for testing."""
    from audit_service.api import dependencies

    app.dependency_overrides[dependencies.get_container] = lambda: fake_container
    app.dependency_overrides[dependencies.get_app_settings] = lambda: api_settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client for testing; uses overridden app."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def merchant_headers():
    return {"X-Merchant-ID": "m1"}
