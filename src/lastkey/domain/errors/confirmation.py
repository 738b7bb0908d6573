"""Witness confirmation errors."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from lastkey.domain.errors.base import (
    ReleaseConflictError,
    ReleaseForbiddenError,
    ReleaseValidationError,
)


class InvalidDecisionError(ReleaseValidationError):
    """Raised when a confirmation decision is neither approved nor rejected."""

    def __init__(self, decision: str) -> None:
        self.decision = decision
        super().__init__(
            f"Invalid decision {decision!r}. Must be 'approved' or 'rejected'"
        )


class CommentTooLongError(ReleaseValidationError):
    """Raised when a confirmation comment exceeds the maximum length."""

    def __init__(self, length: int, max_length: int) -> None:
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"Comment is {length} characters, maximum is {max_length}"
        )


class WitnessRoleRequiredError(ReleaseForbiddenError):
    """Raised when a participant without the witness role tries to confirm."""

    def __init__(self, participant_id: UUID, vault_id: UUID) -> None:
        self.participant_id = participant_id
        self.vault_id = vault_id
        super().__init__(
            f"Participant {participant_id} is not a witness for vault {vault_id}. "
            "Only witnesses can approve or reject releases"
        )


class DuplicateConfirmationError(ReleaseConflictError):
    """Raised when a witness confirms the same release a second time.

    The first confirmation stands; duplicates are rejected, never merged.

    Attributes:
        release_id: The release that was already confirmed.
        participant_id: The witness.
        existing_confirmation_id: Id of the stored confirmation, if known.
        confirmed_at: When the stored confirmation was recorded, if known.
    """

    def __init__(
        self,
        release_id: UUID,
        participant_id: UUID,
        existing_confirmation_id: UUID | None = None,
        confirmed_at: datetime | None = None,
    ) -> None:
        self.release_id = release_id
        self.participant_id = participant_id
        self.existing_confirmation_id = existing_confirmation_id
        self.confirmed_at = confirmed_at
        super().__init__(
            f"Participant {participant_id} already submitted a confirmation "
            f"for release {release_id}"
        )
