"""Concurrent modification error for optimistic release updates.

Every release write is a compare-and-swap on the release version. When the
stored version moved on between read and write, the writer lost the race.
"""

from __future__ import annotations

from uuid import UUID

from lastkey.domain.errors.base import ReleaseConflictError


class ConcurrentModificationError(ReleaseConflictError):
    """Raised when a CAS update finds a different version than expected.

    This is a recoverable error - the caller should re-read the release
    and decide whether to retry or abort.

    Attributes:
        release_id: UUID of the release that was being modified.
        expected_version: The version the writer read.
        actual_version: The version found in the store, when the store
            reported it. Greater than expected_version means another writer
            moved the release forward.
        operation: Description of the operation that failed.
    """

    def __init__(
        self,
        release_id: UUID,
        expected_version: int,
        operation: str = "release_update",
        actual_version: int | None = None,
    ) -> None:
        self.release_id = release_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for release {release_id} "
            f"during {operation}. Expected version: {expected_version}."
        )

    @property
    def superseded(self) -> bool:
        """True when the release moved on rather than the write being refused."""
        return self.actual_version is not None and self.actual_version > self.expected_version
