"""Tests for settings and engine construction."""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from appconf.core.config import Settings
from appconf.db.session import create_engine_from_settings, normalize_database_url


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.port == 65528
    assert settings.cors_origin == "http://localhost:65528"
    assert settings.db_pool_size == 5


def test_database_url_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/conf")

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgres://u:p@db:5432/conf"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("sqlite:///./conf.db", "sqlite+aiosqlite:///./conf.db"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ],
)
def test_normalize_database_url(url: str, expected: str) -> None:
    assert normalize_database_url(url) == expected


@pytest.mark.asyncio
async def test_server_engine_pool_is_bounded() -> None:
    engine = create_engine_from_settings(
        Settings(_env_file=None, database_url="postgres://u:p@localhost/conf", db_pool_size=3)
    )
    try:
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.pool.size() == 3
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_memory_sqlite_uses_static_pool() -> None:
    engine = create_engine_from_settings(
        Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:")
    )
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        await engine.dispose()
