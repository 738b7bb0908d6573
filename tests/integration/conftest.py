"""Integration test fixtures for the release engine.

Release scenarios run against the in-memory engine from tests/conftest.py.
Tests that request ``postgres_engine`` run the same engine against a real
PostgreSQL started through testcontainers.

Requirements for the PostgreSQL tests:
- Docker must be running
- testcontainers[postgres] must be installed

Usage:
    pytest tests/integration/ -m integration
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator

import pytest
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer

from lastkey.bootstrap.database import (
    close_database_engine,
    get_database_engine,
    get_session_factory,
    reset_database_bootstrap,
)
from lastkey.bootstrap.release_engine import ReleaseEngine, build_release_engine
from lastkey.config.release_config import TEST_RELEASE_ENGINE_CONFIG
from lastkey.infrastructure.adapters.persistence import create_schema
from lastkey.infrastructure.monitoring.metrics import MetricsCollector
from lastkey.infrastructure.stubs import AuditSinkStub, NotifierStub
from tests.helpers.fake_time_authority import FakeTimeAuthority

TRUNCATE_ALL = (
    "TRUNCATE confirmations, releases, vault_participants, rule_sets, vaults, owners"
)


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container, started on first use."""
    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def postgres_url(postgres_container: PostgresContainer) -> str:
    """Container URL with the driver stripped; bootstrap adds asyncpg."""
    sync_url: str = postgres_container.get_connection_url()
    return sync_url.replace("postgresql+psycopg2://", "postgresql://")


@pytest.fixture
async def postgres_engine(
    postgres_url: str,
    monkeypatch: pytest.MonkeyPatch,
    fake_time_authority: FakeTimeAuthority,
    notifier: NotifierStub,
    audit_sink: AuditSinkStub,
    metrics: MetricsCollector,
) -> AsyncGenerator[ReleaseEngine, None]:
    """Release engine on PostgreSQL with empty tables."""
    monkeypatch.setenv("DATABASE_URL", postgres_url)
    reset_database_bootstrap()

    await create_schema(get_database_engine())
    async with get_session_factory()() as session, session.begin():
        await session.execute(text(TRUNCATE_ALL))

    yield build_release_engine(
        TEST_RELEASE_ENGINE_CONFIG,
        time_authority=fake_time_authority,
        notifier=notifier,
        audit_sink=audit_sink,
        metrics=metrics,
        use_database=True,
    )

    await close_database_engine()
