"""Unit tests for the Release model and its transition matrix."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from lastkey.domain.errors.state_transition import (
    InvalidStateTransitionError,
    ReleaseTerminalError,
)
from lastkey.domain.models.release import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITION_MATRIX,
    Release,
    ReleaseStatus,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _release(**overrides: object) -> Release:
    fields: dict[str, object] = {
        "id": uuid4(),
        "vault_id": uuid4(),
        "triggered_at": NOW,
        "grace_period_end": NOW + timedelta(minutes=3),
        "approvals_needed": 2,
    }
    fields.update(overrides)
    return Release(**fields)  # type: ignore[arg-type]


class TestReleaseStatus:
    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == frozenset({ReleaseStatus.RELEASED, ReleaseStatus.REJECTED})
        for status in TERMINAL_STATUSES:
            assert status.is_terminal()
            assert not status.is_active()

    def test_active_statuses(self) -> None:
        assert ACTIVE_STATUSES == frozenset(
            {ReleaseStatus.PENDING, ReleaseStatus.IN_PROGRESS, ReleaseStatus.APPROVED}
        )

    def test_terminal_statuses_have_no_transitions(self) -> None:
        for status in TERMINAL_STATUSES:
            assert TRANSITION_MATRIX[status] == frozenset()

    def test_every_active_status_can_be_rejected(self) -> None:
        for status in ACTIVE_STATUSES:
            assert ReleaseStatus.REJECTED in status.valid_transitions()

    def test_only_approved_can_be_released(self) -> None:
        allowed_from = [
            s for s, targets in TRANSITION_MATRIX.items() if ReleaseStatus.RELEASED in targets
        ]
        assert allowed_from == [ReleaseStatus.APPROVED]


class TestReleaseValidation:
    def test_defaults(self) -> None:
        release = _release()
        assert release.status == ReleaseStatus.PENDING
        assert release.approvals_received == 0
        assert release.countdown_end is None
        assert release.completed_at is None
        assert release.notified_time_lock is False
        assert release.version == 0

    def test_approvals_needed_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="approvals_needed"):
            _release(approvals_needed=0)

    def test_approvals_received_cannot_exceed_needed(self) -> None:
        with pytest.raises(ValueError, match="approvals_received"):
            _release(approvals_received=3)

    def test_grace_period_end_cannot_precede_trigger(self) -> None:
        with pytest.raises(ValueError, match="grace_period_end"):
            _release(grace_period_end=NOW - timedelta(seconds=1))

    def test_countdown_end_requires_approval(self) -> None:
        with pytest.raises(ValueError, match="countdown_end"):
            _release(countdown_end=NOW)

    def test_approved_requires_countdown_end(self) -> None:
        with pytest.raises(ValueError, match="countdown_end"):
            _release(status=ReleaseStatus.APPROVED, approvals_received=2)

    def test_terminal_requires_completed_at(self) -> None:
        with pytest.raises(ValueError, match="completed_at"):
            _release(status=ReleaseStatus.REJECTED)

    def test_completed_at_only_on_terminal(self) -> None:
        with pytest.raises(ValueError, match="completed_at"):
            _release(completed_at=NOW)

    def test_negative_version_rejected(self) -> None:
        with pytest.raises(ValueError, match="version"):
            _release(version=-1)


class TestReleaseTransitions:
    def test_with_status_follows_matrix(self) -> None:
        release = _release()
        moved = release.with_status(ReleaseStatus.IN_PROGRESS)
        assert moved.status == ReleaseStatus.IN_PROGRESS
        assert release.status == ReleaseStatus.PENDING

    def test_with_status_rejects_skipping_states(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            _release().with_status(
                ReleaseStatus.APPROVED, countdown_end=NOW, approvals_received=2
            )

    def test_terminal_release_cannot_move(self) -> None:
        released = _release(
            status=ReleaseStatus.RELEASED,
            approvals_received=2,
            countdown_end=NOW,
            completed_at=NOW,
        )
        with pytest.raises(ReleaseTerminalError):
            released.with_status(ReleaseStatus.REJECTED, completed_at=NOW)
        with pytest.raises(ReleaseTerminalError):
            released.with_changes(notified_time_lock=True)

    def test_with_version_keeps_fields(self) -> None:
        release = _release()
        stamped = release.with_version(4)
        assert stamped.version == 4
        assert stamped.id == release.id


class TestReleaseQueries:
    def test_in_grace_period_until_end(self) -> None:
        release = _release()
        assert release.is_in_grace_period(NOW)
        assert not release.is_in_grace_period(release.grace_period_end)

    def test_time_lock_remaining(self) -> None:
        approved = _release(
            status=ReleaseStatus.APPROVED,
            approvals_received=2,
            countdown_end=NOW + timedelta(minutes=2),
        )
        assert approved.is_in_time_lock(NOW)
        assert approved.time_lock_remaining(NOW) == timedelta(minutes=2)
        later = NOW + timedelta(minutes=5)
        assert not approved.is_in_time_lock(later)
        assert approved.time_lock_remaining(later) == timedelta(0)

    def test_time_lock_remaining_none_when_not_approved(self) -> None:
        assert _release().time_lock_remaining(NOW) is None
