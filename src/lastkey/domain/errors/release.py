"""Release lifecycle errors.

These errors cover the state-conflict and lookup cases of the release
operations: trigger, confirm, finalize and revoke.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from lastkey.domain.errors.base import ReleaseConflictError, ReleaseLookupError

if TYPE_CHECKING:
    from lastkey.domain.models.release import ReleaseStatus


class ReleaseNotFoundError(ReleaseLookupError):
    """Raised when a release id does not resolve to a stored release.

    Attributes:
        release_id: The id that was looked up.
    """

    def __init__(self, release_id: UUID) -> None:
        self.release_id = release_id
        super().__init__(f"Release {release_id} not found")


class ReleaseAlreadyActiveError(ReleaseConflictError):
    """Raised when a vault already has a non-terminal release.

    At most one release per vault may be pending, in progress or approved.

    Attributes:
        vault_id: The vault that already has an active release.
        existing_release_id: The active release, when known.
    """

    def __init__(
        self,
        vault_id: UUID,
        existing_release_id: UUID | None = None,
    ) -> None:
        self.vault_id = vault_id
        self.existing_release_id = existing_release_id
        suffix = f" ({existing_release_id})" if existing_release_id else ""
        super().__init__(
            f"Release already in progress for vault {vault_id}{suffix}"
        )


class ReleaseInvalidStateError(ReleaseConflictError):
    """Raised when a release is not in the status an operation requires.

    Attributes:
        release_id: The release that was acted on.
        current_status: Status the release is actually in.
        required_status: Status the operation needed.
    """

    def __init__(
        self,
        release_id: UUID,
        current_status: ReleaseStatus,
        required_status: ReleaseStatus,
        message: str | None = None,
    ) -> None:
        self.release_id = release_id
        self.current_status = current_status
        self.required_status = required_status
        super().__init__(
            message
            or (
                f"Release {release_id} is not awaiting approval: "
                f"status is {current_status.value}, "
                f"expected {required_status.value}"
            )
        )


class GracePeriodActiveError(ReleaseInvalidStateError):
    """Raised when witnesses act on a release whose grace period is running.

    Attributes:
        grace_period_end: When the grace period ends.
    """

    def __init__(
        self,
        release_id: UUID,
        current_status: ReleaseStatus,
        required_status: ReleaseStatus,
        grace_period_end: datetime,
    ) -> None:
        self.grace_period_end = grace_period_end
        super().__init__(
            release_id=release_id,
            current_status=current_status,
            required_status=required_status,
            message=(
                f"Release {release_id} is not awaiting approval: grace period "
                f"not yet ended (ends {grace_period_end.isoformat()})"
            ),
        )


class ReleaseNotApprovedError(ReleaseConflictError):
    """Raised when finalize is called on a release that is not approved."""

    def __init__(self, release_id: UUID, current_status: ReleaseStatus) -> None:
        self.release_id = release_id
        self.current_status = current_status
        super().__init__(
            f"Cannot finalize release {release_id}: status is "
            f"{current_status.value}, not all approvals complete"
        )


class TimeLockActiveError(ReleaseConflictError):
    """Raised when finalize is called before the countdown has elapsed.

    Attributes:
        countdown_end: When the time-lock ends.
    """

    def __init__(self, release_id: UUID, countdown_end: datetime) -> None:
        self.release_id = release_id
        self.countdown_end = countdown_end
        super().__init__(
            f"Time-lock for release {release_id} not yet finished "
            f"(ends {countdown_end.isoformat()})"
        )


class ReleaseAlreadyReleasedError(ReleaseConflictError):
    """Raised when the owner tries to revoke a release that already completed."""

    def __init__(self, release_id: UUID) -> None:
        self.release_id = release_id
        super().__init__(f"Cannot revoke release {release_id}: vault already released")
