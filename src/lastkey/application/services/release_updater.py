"""Optimistic read-modify-write of a single release.

Every transition goes through ReleaseUpdater.apply(): read the release,
compute the next value with a pure function, write it with a version check.
When another writer got there first the whole cycle repeats against the
fresh value, so guards are always evaluated on current state. A lost race
against a newer version is always progress and is retried until the
transition itself refuses; only conflicts where the version did not move
count towards max_retries.
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.release import ReleaseNotFoundError
from lastkey.domain.models.release import Release
from lastkey.infrastructure.observability.logging import get_logger_for_service

# Returns the next release value, or None when there is nothing to do
ReleaseTransition = Callable[[Release], Release | None]


class ReleaseUpdater:
    """Applies transitions with compare-and-swap and retry."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        max_retries: int,
    ) -> None:
        self._releases = releases
        self._max_retries = max_retries
        self._log = get_logger_for_service("release_updater")

    async def apply(
        self,
        release_id: UUID,
        transition: ReleaseTransition,
    ) -> tuple[Release, bool]:
        """Apply ``transition`` to the current value of the release.

        Args:
            release_id: Release to change.
            transition: Pure function from current to next value. Domain
                errors it raises propagate unchanged.

        Returns:
            (stored release, changed). changed is False when the transition
            returned None.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ConcurrentModificationError: If max_retries writes in a row were
                refused without the release moving on.
        """
        stalled = 0
        while True:
            current = await self._releases.get(release_id)
            if current is None:
                raise ReleaseNotFoundError(release_id)

            updated = transition(current)
            if updated is None:
                return current, False

            try:
                stored = await self._releases.update(updated, current.version)
            except ConcurrentModificationError as e:
                stalled = 0 if e.superseded else stalled + 1
                if stalled >= self._max_retries:
                    self._log.warning(
                        "release_update_retries_exhausted",
                        release_id=str(release_id),
                        attempts=stalled,
                    )
                    raise
                self._log.debug(
                    "release_update_conflict",
                    release_id=str(release_id),
                    expected_version=e.expected_version,
                    actual_version=e.actual_version,
                )
                continue
            return stored, True
