"""In-memory release repository.

Simulates the PostgreSQL adapter's guarantees with one asyncio.Lock: the
active-release check in create() and the version check in update() happen
under the lock, like the partial unique index and the
``UPDATE ... WHERE version = :expected`` statement do in the database.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.release import (
    ReleaseAlreadyActiveError,
    ReleaseNotFoundError,
)
from lastkey.domain.models.release import Release, ReleaseStatus


class ReleaseRepositoryStub(ReleaseRepositoryProtocol):
    """In-memory ReleaseRepositoryProtocol for development and testing.

    Attributes:
        _releases: Dictionary mapping release id to its latest stored value.
    """

    def __init__(self) -> None:
        self._releases: dict[UUID, Release] = {}
        # Guards every check-then-write, also used by ConfirmationRepositoryStub
        self.lock = asyncio.Lock()

    async def create(self, release: Release) -> Release:
        async with self.lock:
            if release.id in self._releases:
                raise ValueError(f"Release already exists: {release.id}")
            if release.is_active:
                existing = self._find_active(release.vault_id)
                if existing is not None:
                    raise ReleaseAlreadyActiveError(
                        vault_id=release.vault_id,
                        existing_release_id=existing.id,
                    )
            self._releases[release.id] = release
            return release

    async def get(self, release_id: UUID) -> Release | None:
        return self._releases.get(release_id)

    async def get_active_for_vault(self, vault_id: UUID) -> Release | None:
        return self._find_active(vault_id)

    async def get_latest_for_vault(
        self,
        vault_id: UUID,
        *,
        include_rejected: bool = False,
    ) -> Release | None:
        candidates = [
            r
            for r in self._releases.values()
            if r.vault_id == vault_id
            and (include_rejected or r.status != ReleaseStatus.REJECTED)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.triggered_at)

    async def list_by_status(
        self,
        status: ReleaseStatus,
        *,
        due_before: datetime | None = None,
    ) -> list[Release]:
        matching = [r for r in self._releases.values() if r.status == status]
        if due_before is not None:
            matching = [r for r in matching if _is_due(r, due_before)]
        matching.sort(key=lambda r: r.triggered_at)
        return matching

    async def list_for_vaults(
        self,
        vault_ids: Sequence[UUID],
        statuses: Sequence[ReleaseStatus] | None = None,
    ) -> list[Release]:
        wanted = set(vault_ids)
        matching = [
            r
            for r in self._releases.values()
            if r.vault_id in wanted and (statuses is None or r.status in statuses)
        ]
        matching.sort(key=lambda r: r.triggered_at, reverse=True)
        return matching

    async def update(self, release: Release, expected_version: int) -> Release:
        async with self.lock:
            return self.compare_and_set(release, expected_version)

    def compare_and_set(self, release: Release, expected_version: int) -> Release:
        """Apply the version check and write. Caller must hold ``lock``."""
        current = self._releases.get(release.id)
        if current is None:
            raise ReleaseNotFoundError(release.id)
        if current.version != expected_version:
            raise ConcurrentModificationError(
                release_id=release.id,
                expected_version=expected_version,
                actual_version=current.version,
            )
        stored = replace(release, version=expected_version + 1)
        self._releases[release.id] = stored
        return stored

    def _find_active(self, vault_id: UUID) -> Release | None:
        for release in self._releases.values():
            if release.vault_id == vault_id and release.is_active:
                return release
        return None

    def clear(self) -> None:
        """Clear all stored releases (for testing)."""
        self._releases.clear()


def _is_due(release: Release, due_before: datetime) -> bool:
    if release.status == ReleaseStatus.PENDING:
        return release.grace_period_end <= due_before
    if release.status == ReleaseStatus.APPROVED and release.countdown_end is not None:
        return release.countdown_end <= due_before
    return True
