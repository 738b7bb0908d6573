"""Release repository port.

Repositories enforce the two persistence invariants of the engine:

1. At most one active release (pending, in_progress, approved) per vault.
   create() raises ReleaseAlreadyActiveError when one exists, so the
   inactivity scan and a manual trigger cannot both open a release.
2. Linearizable updates of a single release. update() is a
   compare-and-swap on the version column; a stale writer gets
   ConcurrentModificationError and must re-read and retry.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from lastkey.domain.models.release import Release, ReleaseStatus


class ReleaseRepositoryProtocol(Protocol):
    """Protocol for release storage operations.

    Releases are never deleted. Terminal releases remain as history.
    """

    async def create(self, release: Release) -> Release:
        """Store a new release.

        Args:
            release: The release to store, normally pending at version 0.

        Returns:
            The stored release.

        Raises:
            ReleaseAlreadyActiveError: If the vault already has an active release.
        """
        ...

    async def get(self, release_id: UUID) -> Release | None:
        """Retrieve a release by id, or None."""
        ...

    async def get_active_for_vault(self, vault_id: UUID) -> Release | None:
        """Return the vault's active release, or None."""
        ...

    async def get_latest_for_vault(
        self,
        vault_id: UUID,
        *,
        include_rejected: bool = False,
    ) -> Release | None:
        """Return the vault's most recently triggered release.

        Args:
            vault_id: The vault.
            include_rejected: When False, rejected releases are skipped.
        """
        ...

    async def list_by_status(
        self,
        status: ReleaseStatus,
        *,
        due_before: datetime | None = None,
    ) -> list[Release]:
        """List releases in a status.

        Args:
            status: Status to filter by.
            due_before: When set, only releases whose relevant deadline is
                <= due_before: grace_period_end for pending, countdown_end
                for approved.

        Returns:
            Releases ordered by triggered_at ascending.
        """
        ...

    async def list_for_vaults(
        self,
        vault_ids: Sequence[UUID],
        statuses: Sequence[ReleaseStatus] | None = None,
    ) -> list[Release]:
        """List releases of several vaults, newest triggered_at first."""
        ...

    async def update(self, release: Release, expected_version: int) -> Release:
        """Persist a changed release if nobody else changed it first.

        Args:
            release: The new release value.
            expected_version: Version the caller read before changing it.

        Returns:
            The stored release with version = expected_version + 1.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ConcurrentModificationError: If the stored version differs.
        """
        ...
