"""Unit tests for ReleaseUpdater (optimistic read-transition-write)."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from lastkey.application.services.release_updater import ReleaseUpdater
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.release import ReleaseNotFoundError
from lastkey.domain.errors.state_transition import InvalidStateTransitionError
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.infrastructure.stubs.release_repository_stub import ReleaseRepositoryStub
from tests.helpers import yield_after_reads

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _pending() -> Release:
    return Release(
        id=uuid4(),
        vault_id=uuid4(),
        triggered_at=NOW,
        grace_period_end=NOW + timedelta(minutes=1),
        approvals_needed=1,
    )


@pytest.mark.asyncio
async def test_applies_transition_and_bumps_version() -> None:
    repo = ReleaseRepositoryStub()
    created = await repo.create(_pending())
    updater = ReleaseUpdater(repo, max_retries=3)

    stored, changed = await updater.apply(
        created.id, lambda r: r.with_status(ReleaseStatus.IN_PROGRESS)
    )

    assert changed
    assert stored.status == ReleaseStatus.IN_PROGRESS
    assert stored.version == created.version + 1


@pytest.mark.asyncio
async def test_none_transition_is_a_no_op() -> None:
    repo = ReleaseRepositoryStub()
    created = await repo.create(_pending())
    updater = ReleaseUpdater(repo, max_retries=3)

    stored, changed = await updater.apply(created.id, lambda r: None)

    assert not changed
    assert stored == created


@pytest.mark.asyncio
async def test_unknown_release() -> None:
    updater = ReleaseUpdater(ReleaseRepositoryStub(), max_retries=3)
    with pytest.raises(ReleaseNotFoundError):
        await updater.apply(uuid4(), lambda r: r)


@pytest.mark.asyncio
async def test_retries_after_conflict() -> None:
    release = _pending()
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=release)
    repo.update = AsyncMock(
        side_effect=[
            ConcurrentModificationError(release.id, expected_version=0),
            release.with_version(1),
        ]
    )
    updater = ReleaseUpdater(repo, max_retries=3)

    stored, changed = await updater.apply(release.id, lambda r: r)

    assert changed
    assert stored.version == 1
    assert repo.get.await_count == 2


@pytest.mark.asyncio
async def test_keeps_retrying_while_other_writers_progress() -> None:
    release = _pending()
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=release)
    repo.update = AsyncMock(
        side_effect=[
            *(
                ConcurrentModificationError(release.id, expected_version=0, actual_version=n)
                for n in range(1, 6)
            ),
            release.with_version(1),
        ]
    )
    updater = ReleaseUpdater(repo, max_retries=2)

    stored, changed = await updater.apply(release.id, lambda r: r)

    assert changed
    assert stored.version == 1
    assert repo.update.await_count == 6


@pytest.mark.asyncio
async def test_gives_up_after_max_retries() -> None:
    release = _pending()
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=release)
    repo.update = AsyncMock(
        side_effect=ConcurrentModificationError(release.id, expected_version=0)
    )
    updater = ReleaseUpdater(repo, max_retries=2)

    with pytest.raises(ConcurrentModificationError):
        await updater.apply(release.id, lambda r: r)
    assert repo.update.await_count == 2


@pytest.mark.asyncio
async def test_domain_errors_from_transition_propagate() -> None:
    repo = ReleaseRepositoryStub()
    created = await repo.create(_pending())
    updater = ReleaseUpdater(repo, max_retries=3)

    with pytest.raises(InvalidStateTransitionError):
        await updater.apply(created.id, lambda r: r.with_status(ReleaseStatus.RELEASED))


@pytest.mark.asyncio
async def test_interleaved_writers_all_land(monkeypatch: pytest.MonkeyPatch) -> None:
    writers = 5
    repo = ReleaseRepositoryStub()
    created = await repo.create(replace(_pending(), approvals_needed=writers))
    yield_after_reads(monkeypatch, repo, "get")
    updater = ReleaseUpdater(repo, max_retries=2)

    results = await asyncio.gather(
        *(
            updater.apply(
                created.id, lambda r: replace(r, approvals_received=r.approvals_received + 1)
            )
            for _ in range(writers)
        )
    )

    assert all(changed for _, changed in results)
    final = await repo.get(created.id)
    assert final is not None
    assert final.approvals_received == writers
    assert final.version == created.version + writers
