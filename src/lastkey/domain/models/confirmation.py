"""Witness confirmation model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from lastkey.domain.errors.confirmation import InvalidDecisionError

MAX_COMMENT_LENGTH = 2_000


class ConfirmationDecision(Enum):
    """A witness decision on a release."""

    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: str | ConfirmationDecision) -> ConfirmationDecision:
        """Parse a decision from user input.

        Raises:
            InvalidDecisionError: If the value is not a known decision.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidDecisionError(str(value)) from None


@dataclass(frozen=True, eq=True)
class Confirmation:
    """One witness decision on one release.

    At most one confirmation exists per (release_id, participant_id).

    Attributes:
        id: Confirmation id (UUIDv7).
        release_id: The release being confirmed.
        participant_id: The witness.
        status: Approved or rejected.
        timestamp: When the decision was recorded.
        comment: Optional free text from the witness.
    """

    id: UUID
    release_id: UUID
    participant_id: UUID
    status: ConfirmationDecision
    timestamp: datetime
    comment: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate confirmation fields."""
        if self.comment is not None and len(self.comment) > MAX_COMMENT_LENGTH:
            raise ValueError(
                f"Comment exceeds maximum length of {MAX_COMMENT_LENGTH} characters"
            )

    @property
    def is_approval(self) -> bool:
        return self.status == ConfirmationDecision.APPROVED
