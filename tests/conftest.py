"""
Pytest configuration and shared fixtures for lastkey tests.

Testing Standards:
- Async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for failing collaborators
- Unit tests go in tests/unit/, end-to-end release scenarios in tests/integration/
- Time is always driven through FakeTimeAuthority on the MINUTES scale
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from lastkey.bootstrap.release_engine import (
    ReleaseEngine,
    build_release_engine,
    reset_release_engine,
    set_release_engine,
)
from lastkey.config.release_config import TEST_RELEASE_ENGINE_CONFIG
from lastkey.infrastructure.monitoring.metrics import MetricsCollector
from lastkey.infrastructure.stubs import (
    AuditSinkStub,
    NotifierStub,
    VaultDirectoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from lastkey import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on its own registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def vault_directory() -> VaultDirectoryStub:
    return VaultDirectoryStub()


@pytest.fixture
def notifier() -> NotifierStub:
    return NotifierStub()


@pytest.fixture
def audit_sink() -> AuditSinkStub:
    return AuditSinkStub()


@pytest.fixture
def engine(
    fake_time_authority: FakeTimeAuthority,
    vault_directory: VaultDirectoryStub,
    notifier: NotifierStub,
    audit_sink: AuditSinkStub,
    metrics: MetricsCollector,
) -> Iterator[ReleaseEngine]:
    """A fully wired in-memory engine on compressed (minutes) time."""
    built = build_release_engine(
        TEST_RELEASE_ENGINE_CONFIG,
        time_authority=fake_time_authority,
        vault_directory=vault_directory,
        notifier=notifier,
        audit_sink=audit_sink,
        metrics=metrics,
        use_database=False,
    )
    set_release_engine(built)
    yield built
    reset_release_engine()
