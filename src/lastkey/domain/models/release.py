"""Release domain model and lifecycle status.

A Release is the single record that tracks one inactivity episode of one
vault from trigger to its terminal outcome. Releases are never deleted;
terminal releases stay as history.

Lifecycle:
    PENDING -> IN_PROGRESS        grace period elapsed
    IN_PROGRESS -> APPROVED       witness quorum reached
    IN_PROGRESS -> REJECTED       any witness veto
    APPROVED -> RELEASED          time-lock elapsed
    PENDING/IN_PROGRESS/APPROVED -> REJECTED   owner revocation

RELEASED and REJECTED are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from lastkey.domain.errors.state_transition import (
    InvalidStateTransitionError,
    ReleaseTerminalError,
)


class ReleaseStatus(Enum):
    """Status in the release lifecycle.

    Statuses:
        PENDING: Triggered, grace period running
        IN_PROGRESS: Awaiting witness approvals
        APPROVED: Quorum reached, time-lock running
        RELEASED: Vault accessible to beneficiaries (terminal)
        REJECTED: Vetoed by a witness or revoked by the owner (terminal)
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    RELEASED = "released"
    REJECTED = "rejected"

    def is_terminal(self) -> bool:
        """Check if no further transitions are permitted from this status."""
        return self in TERMINAL_STATUSES

    def is_active(self) -> bool:
        """Check if this status counts toward the one-active-release rule."""
        return self in ACTIVE_STATUSES

    def valid_transitions(self) -> frozenset[ReleaseStatus]:
        """Get valid target statuses from this status.

        Returns:
            Frozenset of statuses this status can move to.
            Empty set for terminal statuses.
        """
        return TRANSITION_MATRIX.get(self, frozenset())


TERMINAL_STATUSES: frozenset[ReleaseStatus] = frozenset(
    {ReleaseStatus.RELEASED, ReleaseStatus.REJECTED}
)

ACTIVE_STATUSES: frozenset[ReleaseStatus] = frozenset(
    {ReleaseStatus.PENDING, ReleaseStatus.IN_PROGRESS, ReleaseStatus.APPROVED}
)

TRANSITION_MATRIX: dict[ReleaseStatus, frozenset[ReleaseStatus]] = {
    # Owner revocation reaches REJECTED from every active status
    ReleaseStatus.PENDING: frozenset(
        {ReleaseStatus.IN_PROGRESS, ReleaseStatus.REJECTED}
    ),
    ReleaseStatus.IN_PROGRESS: frozenset(
        {ReleaseStatus.APPROVED, ReleaseStatus.REJECTED}
    ),
    ReleaseStatus.APPROVED: frozenset(
        {ReleaseStatus.RELEASED, ReleaseStatus.REJECTED}
    ),
    ReleaseStatus.RELEASED: frozenset(),
    ReleaseStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class Release:
    """A dead-man's-switch release of one vault.

    Since Release is frozen, every change produces a new instance. Only the
    release state machine creates changed instances; repositories persist
    them with a compare-and-swap on ``version``.

    Attributes:
        id: Release id (UUIDv7).
        vault_id: The vault being released.
        status: Current lifecycle status.
        triggered_at: When the release was opened.
        grace_period_end: When the grace period ends.
        approvals_needed: Witness approvals required for quorum.
        approvals_received: Witness approvals counted so far.
        countdown_end: End of the time-lock, set on entering APPROVED.
        completed_at: Set on entering RELEASED or REJECTED.
        notified_time_lock: Whether the one-time "time-lock started"
            announcement went out.
        version: Optimistic concurrency version, bumped by every write.
    """

    id: UUID
    vault_id: UUID
    triggered_at: datetime
    grace_period_end: datetime
    approvals_needed: int
    status: ReleaseStatus = field(default=ReleaseStatus.PENDING)
    approvals_received: int = field(default=0)
    countdown_end: datetime | None = field(default=None)
    completed_at: datetime | None = field(default=None)
    notified_time_lock: bool = field(default=False)
    version: int = field(default=0)

    def __post_init__(self) -> None:
        """Validate release invariants."""
        if self.approvals_needed < 1:
            raise ValueError(
                f"approvals_needed must be >= 1, got {self.approvals_needed}"
            )
        if not 0 <= self.approvals_received <= self.approvals_needed:
            raise ValueError(
                f"approvals_received must be between 0 and {self.approvals_needed}, "
                f"got {self.approvals_received}"
            )
        if self.grace_period_end < self.triggered_at:
            raise ValueError("grace_period_end cannot precede triggered_at")
        if self.countdown_end is not None and self.status not in (
            ReleaseStatus.APPROVED,
            ReleaseStatus.RELEASED,
            ReleaseStatus.REJECTED,
        ):
            raise ValueError(
                f"countdown_end is only set once approved, status is {self.status.value}"
            )
        if self.status == ReleaseStatus.APPROVED and self.countdown_end is None:
            raise ValueError("approved release must have countdown_end")
        if (self.completed_at is not None) != self.status.is_terminal():
            raise ValueError("completed_at must be set exactly when status is terminal")
        if self.version < 0:
            raise ValueError("version cannot be negative")

    @property
    def is_active(self) -> bool:
        return self.status.is_active()

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    @property
    def is_released(self) -> bool:
        return self.status == ReleaseStatus.RELEASED

    def is_in_grace_period(self, now: datetime) -> bool:
        """True while pending and the grace period has not ended."""
        return self.status == ReleaseStatus.PENDING and now < self.grace_period_end

    def is_in_time_lock(self, now: datetime) -> bool:
        """True while approved and the countdown has not ended."""
        return (
            self.status == ReleaseStatus.APPROVED
            and self.countdown_end is not None
            and now < self.countdown_end
        )

    def time_lock_remaining(self, now: datetime) -> timedelta | None:
        """Remaining countdown, timedelta(0) once elapsed, None if not approved."""
        if self.status != ReleaseStatus.APPROVED or self.countdown_end is None:
            return None
        return max(self.countdown_end - now, timedelta(0))

    def with_status(self, new_status: ReleaseStatus, **changes: object) -> Release:
        """Create a new release in ``new_status``, enforcing the matrix.

        Args:
            new_status: Target status.
            **changes: Other fields to change in the same step
                (countdown_end, completed_at, approvals_received...).

        Returns:
            New Release with the status and fields applied.

        Raises:
            ReleaseTerminalError: If the release is already terminal.
            InvalidStateTransitionError: If the matrix forbids the move.
        """
        if self.status.is_terminal():
            raise ReleaseTerminalError(release_id=self.id, terminal_status=self.status)

        allowed = self.status.valid_transitions()
        if new_status not in allowed:
            raise InvalidStateTransitionError(
                from_status=self.status,
                to_status=new_status,
                allowed_transitions=sorted(allowed, key=lambda s: s.value),
            )
        return replace(self, status=new_status, **changes)  # type: ignore[arg-type]

    def with_changes(self, **changes: object) -> Release:
        """Create a new release with non-status fields changed.

        Raises:
            ReleaseTerminalError: If the release is already terminal.
        """
        if self.status.is_terminal():
            raise ReleaseTerminalError(release_id=self.id, terminal_status=self.status)
        return replace(self, **changes)  # type: ignore[arg-type]

    def with_version(self, version: int) -> Release:
        """Return the same release stamped with a persisted version."""
        return replace(self, version=version)
