"""Confirmation repository port."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lastkey.domain.models.confirmation import Confirmation
from lastkey.domain.models.release import Release


class ConfirmationRepositoryProtocol(Protocol):
    """Protocol for witness confirmation storage.

    At most one confirmation exists per (release_id, participant_id).
    A confirmation is never stored without the release update it causes.
    """

    async def get(self, release_id: UUID, participant_id: UUID) -> Confirmation | None:
        """Return the participant's confirmation for the release, or None."""
        ...

    async def list_for_release(self, release_id: UUID) -> list[Confirmation]:
        """List confirmations of a release, oldest first."""
        ...

    async def record_confirmation(
        self,
        confirmation: Confirmation,
        release: Release,
        expected_version: int,
    ) -> Release:
        """Insert a confirmation and update its release as one unit.

        Args:
            confirmation: The new confirmation.
            release: The release after applying the decision.
            expected_version: Version the caller read before applying it.

        Returns:
            The stored release with its new version.

        Raises:
            DuplicateConfirmationError: If the participant already confirmed.
            ConcurrentModificationError: If the release changed meanwhile.
                Nothing is written in that case.
        """
        ...
