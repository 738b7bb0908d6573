"""Unit tests for TimeUnit, RuleSet, Confirmation, Vault and audit events."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from lastkey.domain.errors.confirmation import InvalidDecisionError
from lastkey.domain.errors.vault import InvalidRuleSetError
from lastkey.domain.events.release import (
    RELEASE_SYSTEM_ACTOR_ID,
    RELEASE_TRIGGERED_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.models.confirmation import (
    MAX_COMMENT_LENGTH,
    Confirmation,
    ConfirmationDecision,
)
from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import Participant, ParticipantRole, Vault

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestTimeUnit:
    def test_durations(self) -> None:
        assert TimeUnit.DAYS.duration(2) == timedelta(days=2)
        assert TimeUnit.MINUTES.duration(1.5) == timedelta(seconds=90)

    def test_negative_duration_rejected(self) -> None:
        with pytest.raises(ValueError):
            TimeUnit.MINUTES.duration(-1)

    def test_to_units(self) -> None:
        assert TimeUnit.DAYS.to_units(timedelta(hours=12)) == 0.5

    def test_describe(self) -> None:
        assert TimeUnit.DAYS.describe(3.0) == "3 day(s)"
        assert TimeUnit.MINUTES.describe(1.5) == "1.5 minute(s)"

    def test_from_name(self) -> None:
        assert TimeUnit.from_name(" Minutes ") is TimeUnit.MINUTES
        with pytest.raises(ValueError, match="Unknown time unit"):
            TimeUnit.from_name("hours")


class TestRuleSet:
    def test_valid(self) -> None:
        rule_set = RuleSet(uuid4(), inactivity_period=30, grace_period=7, time_lock=3)
        assert rule_set.approvals_required == 1
        assert rule_set.monitors_inactivity

    @pytest.mark.parametrize("period", [None, 0])
    def test_no_inactivity_monitoring(self, period: float | None) -> None:
        rule_set = RuleSet(uuid4(), inactivity_period=period, grace_period=1, time_lock=1)
        assert not rule_set.monitors_inactivity

    @pytest.mark.parametrize(
        "field_name",
        ["inactivity_period", "grace_period", "time_lock"],
    )
    def test_negative_durations_rejected(self, field_name: str) -> None:
        values = {"inactivity_period": 1.0, "grace_period": 1.0, "time_lock": 1.0}
        values[field_name] = -1.0
        with pytest.raises(InvalidRuleSetError, match=field_name):
            RuleSet(uuid4(), **values)

    def test_quorum_must_be_positive(self) -> None:
        with pytest.raises(InvalidRuleSetError, match="approvals_required"):
            RuleSet(uuid4(), inactivity_period=1, grace_period=1, time_lock=1, approvals_required=0)


class TestConfirmation:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("approved", ConfirmationDecision.APPROVED),
            (" REJECTED ", ConfirmationDecision.REJECTED),
            (ConfirmationDecision.APPROVED, ConfirmationDecision.APPROVED),
        ],
    )
    def test_parse(self, raw: str | ConfirmationDecision, expected: ConfirmationDecision) -> None:
        assert ConfirmationDecision.parse(raw) is expected

    def test_parse_unknown_decision(self) -> None:
        with pytest.raises(InvalidDecisionError):
            ConfirmationDecision.parse("maybe")

    def test_comment_length_limit(self) -> None:
        with pytest.raises(ValueError, match="Comment"):
            Confirmation(
                id=uuid4(),
                release_id=uuid4(),
                participant_id=uuid4(),
                status=ConfirmationDecision.APPROVED,
                timestamp=NOW,
                comment="x" * (MAX_COMMENT_LENGTH + 1),
            )

    def test_is_approval(self) -> None:
        confirmation = Confirmation(
            id=uuid4(),
            release_id=uuid4(),
            participant_id=uuid4(),
            status=ConfirmationDecision.REJECTED,
            timestamp=NOW,
        )
        assert not confirmation.is_approval


class TestVault:
    def test_roles(self) -> None:
        witness = Participant(uuid4(), ParticipantRole.WITNESS)
        beneficiary = Participant(uuid4(), ParticipantRole.BENEFICIARY)
        shared = Participant(uuid4(), ParticipantRole.SHARED)
        vault = Vault(
            id=uuid4(),
            owner_id=uuid4(),
            title="Deeds",
            participants=(witness, beneficiary, shared),
        )
        assert vault.witnesses == (witness,)
        assert vault.beneficiaries == (beneficiary,)
        assert vault.has_role(witness.participant_id, ParticipantRole.WITNESS)
        assert not vault.has_role(beneficiary.participant_id, ParticipantRole.WITNESS)
        assert vault.is_participant(shared.participant_id)
        assert vault.is_owner(vault.owner_id)
        assert not vault.is_participant(vault.owner_id)

    def test_marker_copy(self) -> None:
        vault = Vault(id=uuid4(), owner_id=uuid4(), title="Deeds")
        assert vault.with_release_triggered(True).release_triggered
        assert not vault.release_triggered


class TestReleaseAuditEvent:
    def test_signable_content_is_canonical(self) -> None:
        vault_id = uuid4()
        a = ReleaseAuditEvent(
            event_type=RELEASE_TRIGGERED_EVENT_TYPE,
            vault_id=vault_id,
            occurred_at=NOW,
            details={"b": 1, "a": 2},
        )
        b = ReleaseAuditEvent(
            event_type=RELEASE_TRIGGERED_EVENT_TYPE,
            vault_id=vault_id,
            occurred_at=NOW,
            details={"a": 2, "b": 1},
        )
        assert a.signable_content() == b.signable_content()

    def test_to_dict(self) -> None:
        event = ReleaseAuditEvent(
            event_type=RELEASE_TRIGGERED_EVENT_TYPE,
            vault_id=uuid4(),
            occurred_at=NOW,
        )
        data = json.loads(event.signable_content())
        assert data["actor_id"] == RELEASE_SYSTEM_ACTOR_ID
        assert data["release_id"] is None
        assert data["occurred_at"] == NOW.isoformat()
