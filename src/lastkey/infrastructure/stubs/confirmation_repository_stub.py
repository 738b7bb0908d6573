"""In-memory confirmation repository.

Shares the release stub's lock so that recording a confirmation and bumping
the release version are one atomic step, like the single transaction used by
the PostgreSQL adapter.
"""

from __future__ import annotations

from uuid import UUID

from lastkey.application.ports.confirmation_repository import (
    ConfirmationRepositoryProtocol,
)
from lastkey.domain.errors.confirmation import DuplicateConfirmationError
from lastkey.domain.models.confirmation import Confirmation
from lastkey.domain.models.release import Release
from lastkey.infrastructure.stubs.release_repository_stub import ReleaseRepositoryStub


class ConfirmationRepositoryStub(ConfirmationRepositoryProtocol):
    """In-memory ConfirmationRepositoryProtocol for development and testing.

    Attributes:
        _confirmations: Dictionary keyed by (release_id, participant_id).
    """

    def __init__(self, releases: ReleaseRepositoryStub) -> None:
        self._releases = releases
        self._confirmations: dict[tuple[UUID, UUID], Confirmation] = {}

    async def get(self, release_id: UUID, participant_id: UUID) -> Confirmation | None:
        return self._confirmations.get((release_id, participant_id))

    async def list_for_release(self, release_id: UUID) -> list[Confirmation]:
        matching = [c for c in self._confirmations.values() if c.release_id == release_id]
        matching.sort(key=lambda c: c.timestamp)
        return matching

    async def record_confirmation(
        self,
        confirmation: Confirmation,
        release: Release,
        expected_version: int,
    ) -> Release:
        key = (confirmation.release_id, confirmation.participant_id)
        async with self._releases.lock:
            existing = self._confirmations.get(key)
            if existing is not None:
                raise DuplicateConfirmationError(
                    release_id=confirmation.release_id,
                    participant_id=confirmation.participant_id,
                    existing_confirmation_id=existing.id,
                    confirmed_at=existing.timestamp,
                )
            # Version check first; nothing is written if it fails
            stored = self._releases.compare_and_set(release, expected_version)
            self._confirmations[key] = confirmation
            return stored

    def clear(self) -> None:
        self._confirmations.clear()
