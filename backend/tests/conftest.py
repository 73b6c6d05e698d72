"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from appconf.core.config import Settings
from appconf.db import create_engine_from_settings, create_session_maker
from appconf.db.base import Base
from appconf.main import create_app
from appconf.services.store import ConfigurationStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_ORIGIN = "http://localhost:65528"


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at a private in-memory database."""
    return Settings(
        database_url=TEST_DB_URL,
        create_schema=True,
        cors_origin=TEST_ORIGIN,
        max_body_bytes=1024,
        log_body_chars=256,
    )


@pytest.fixture
async def db_engine(test_settings: Settings):
    """Create an in-memory test database engine."""
    engine = create_engine_from_settings(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return create_session_maker(db_engine)


@pytest.fixture
async def db_session(session_maker) -> AsyncSession:
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(db_session: AsyncSession) -> ConfigurationStore:
    """ConfigurationStore bound to the test session."""
    return ConfigurationStore(db_session)


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Application wired to the test settings."""
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI):
    """Create a test client; entering it runs the lifespan and creates the table."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def insert_entry(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Insert an entry through the API and return the stored form."""

    def _insert(name: str, data: str, data_type: str = "string", **extra: Any) -> dict[str, Any]:
        payload = {"name": name, "data": data, "data_type": data_type, **extra}
        response = client.post("/insert-one", json=payload)
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["code"] == 1
        return body["result"]

    return _insert
