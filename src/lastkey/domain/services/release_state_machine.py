"""Release state machine.

Pure functions over Release values. Each function takes the current release
and the current time, checks the transition guard, and returns the next
release with its status and derived fields (countdown_end, completed_at,
approvals_received) updated together. Nothing here reads or writes storage;
callers persist the returned value with a version check.

    pending --grace elapsed--> in_progress
    in_progress --approval--> in_progress | approved (quorum)
    in_progress --rejection--> rejected
    approved --countdown elapsed--> released
    pending/in_progress/approved --owner revoke--> rejected
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from lastkey.domain.errors.release import (
    GracePeriodActiveError,
    ReleaseAlreadyReleasedError,
    ReleaseInvalidStateError,
    ReleaseNotApprovedError,
    TimeLockActiveError,
)
from lastkey.domain.errors.state_transition import (
    ReleaseTerminalError,
    TransitionGuardError,
)
from lastkey.domain.models.confirmation import ConfirmationDecision
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.time_unit import TimeUnit


def open_release(
    release_id: UUID,
    rule_set: RuleSet,
    time_unit: TimeUnit,
    now: datetime,
) -> Release:
    """Create a pending release for the rule set's vault.

    The grace period and quorum are taken from the rule set at trigger time.
    """
    return Release(
        id=release_id,
        vault_id=rule_set.vault_id,
        status=ReleaseStatus.PENDING,
        triggered_at=now,
        grace_period_end=now + time_unit.duration(rule_set.grace_period),
        approvals_needed=rule_set.approvals_required,
        approvals_received=0,
    )


def end_grace_period(release: Release, now: datetime) -> Release:
    """Move a pending release to in_progress once its grace period ended.

    Raises:
        TransitionGuardError: If now < grace_period_end.
        InvalidStateTransitionError: If the release is not pending.
        ReleaseTerminalError: If the release is terminal.
    """
    if now < release.grace_period_end:
        raise TransitionGuardError(release.id, "grace period has not ended")
    return release.with_status(ReleaseStatus.IN_PROGRESS)


def ensure_awaiting_approval(release: Release) -> None:
    """Check that witnesses may act on the release.

    Raises:
        GracePeriodActiveError: If the release is still pending.
        ReleaseInvalidStateError: If the release is past in_progress.
    """
    if release.status == ReleaseStatus.IN_PROGRESS:
        return
    if release.status == ReleaseStatus.PENDING:
        raise GracePeriodActiveError(
            release_id=release.id,
            current_status=release.status,
            required_status=ReleaseStatus.IN_PROGRESS,
            grace_period_end=release.grace_period_end,
        )
    raise ReleaseInvalidStateError(
        release_id=release.id,
        current_status=release.status,
        required_status=ReleaseStatus.IN_PROGRESS,
    )


def apply_decision(
    release: Release,
    decision: ConfirmationDecision,
    rule_set: RuleSet,
    time_unit: TimeUnit,
    now: datetime,
) -> Release:
    """Apply one witness decision to an in_progress release.

    A rejection is a veto: the release becomes rejected and the approval
    count is frozen. An approval increments the count; reaching
    approvals_needed moves the release to approved and starts the time-lock
    from the vault's current rule set.

    Raises:
        GracePeriodActiveError: If the release is still pending.
        ReleaseInvalidStateError: If the release is not in_progress.
    """
    ensure_awaiting_approval(release)

    if decision == ConfirmationDecision.REJECTED:
        return release.with_status(ReleaseStatus.REJECTED, completed_at=now)

    received = release.approvals_received + 1
    if received >= release.approvals_needed:
        return release.with_status(
            ReleaseStatus.APPROVED,
            approvals_received=release.approvals_needed,
            countdown_end=now + time_unit.duration(rule_set.time_lock),
        )
    return release.with_changes(approvals_received=received)


def finalize(release: Release, now: datetime) -> Release:
    """Release the vault once the countdown has elapsed.

    Raises:
        ReleaseNotApprovedError: If the release is not approved.
        TimeLockActiveError: If now < countdown_end.
    """
    if release.status != ReleaseStatus.APPROVED or release.countdown_end is None:
        raise ReleaseNotApprovedError(release.id, release.status)
    if now < release.countdown_end:
        raise TimeLockActiveError(release.id, release.countdown_end)
    return release.with_status(ReleaseStatus.RELEASED, completed_at=now)


def revoke(release: Release, now: datetime) -> Release:
    """Owner revocation from any active status.

    Raises:
        ReleaseAlreadyReleasedError: If the vault was already released.
        ReleaseTerminalError: If the release was already rejected.
    """
    if release.status == ReleaseStatus.RELEASED:
        raise ReleaseAlreadyReleasedError(release.id)
    if release.status.is_terminal():
        raise ReleaseTerminalError(release_id=release.id, terminal_status=release.status)
    return release.with_status(ReleaseStatus.REJECTED, completed_at=now)


def mark_time_lock_notified(release: Release) -> Release:
    """Set the one-time time-lock announcement flag."""
    return release.with_changes(notified_time_lock=True)


def needs_time_lock_announcement(release: Release) -> bool:
    return release.status == ReleaseStatus.APPROVED and not release.notified_time_lock


def reminder_due(
    release: Release,
    now: datetime,
    time_unit: TimeUnit,
    threshold_units: float,
) -> bool:
    """True when an approved release is inside the reminder window.

    The window is (now, now + threshold]; an elapsed countdown is handled
    by finalization, not by reminders.
    """
    remaining = release.time_lock_remaining(now)
    if remaining is None or release.countdown_end is None or release.countdown_end <= now:
        return False
    return remaining <= time_unit.duration(threshold_units)
