"""Errors raised by the release state machine."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from lastkey.domain.errors.base import ReleaseConflictError

if TYPE_CHECKING:
    from lastkey.domain.models.release import ReleaseStatus


class InvalidStateTransitionError(ReleaseConflictError):
    """Raised when a transition is not in the release transition matrix.

    Attributes:
        from_status: Current status of the release.
        to_status: Attempted target status.
        allowed_transitions: Valid target statuses from the current status.
    """

    def __init__(
        self,
        from_status: ReleaseStatus,
        to_status: ReleaseStatus,
        allowed_transitions: list[ReleaseStatus] | None = None,
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = allowed_transitions or []

        allowed_str = (
            f" Valid transitions: {[s.value for s in self.allowed_transitions]}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            f"Invalid release transition: {from_status.value} -> {to_status.value}.{allowed_str}"
        )


class ReleaseTerminalError(ReleaseConflictError):
    """Raised when anything tries to move a released or rejected release.

    Attributes:
        release_id: The release in a terminal status.
        terminal_status: RELEASED or REJECTED.
    """

    def __init__(self, release_id: UUID, terminal_status: ReleaseStatus) -> None:
        self.release_id = release_id
        self.terminal_status = terminal_status
        super().__init__(
            f"Release {release_id} is already {terminal_status.value}. "
            "Terminal releases cannot be modified."
        )


class TransitionGuardError(ReleaseConflictError):
    """Raised when a time guard of a transition does not hold yet."""

    def __init__(self, release_id: UUID, guard: str) -> None:
        self.release_id = release_id
        self.guard = guard
        super().__init__(f"Transition guard not satisfied for release {release_id}: {guard}")
