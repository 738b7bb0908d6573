"""Unit tests for the inactivity monitor and ReleaseOpener."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from lastkey.application.services.inactivity_monitor_service import inactivity_deadline
from lastkey.application.services.release_opener import TRIGGER_SOURCE_MANUAL
from lastkey.bootstrap.release_engine import ReleaseEngine
from lastkey.domain.errors.release import ReleaseAlreadyActiveError
from lastkey.domain.errors.vault import NoPolicyError
from lastkey.domain.events.release import RELEASE_TRIGGERED_EVENT_TYPE
from lastkey.domain.models.release import ReleaseStatus
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import OwnerActivity
from lastkey.infrastructure.stubs import AuditSinkStub, NotifierStub, VaultDirectoryStub
from tests.helpers import FakeTimeAuthority, seed_vault

UNIT = TimeUnit.MINUTES


class TestInactivityDeadline:
    def test_deadline(self, vault_directory: VaultDirectoryStub) -> None:
        fixture = seed_vault(vault_directory, last_active_at=None, inactivity_period=10)
        start = FakeTimeAuthority().now()
        owner = OwnerActivity(owner_id=fixture.owner_id, last_active_at=start)
        assert inactivity_deadline(owner, fixture.vault, UNIT) == start + timedelta(minutes=10)

    def test_no_deadline_without_activity(self, vault_directory: VaultDirectoryStub) -> None:
        fixture = seed_vault(vault_directory, last_active_at=None)
        owner = OwnerActivity(owner_id=fixture.owner_id, last_active_at=None)
        assert inactivity_deadline(owner, fixture.vault, UNIT) is None

    @pytest.mark.parametrize("period", [None, 0])
    def test_no_deadline_without_period(
        self, vault_directory: VaultDirectoryStub, period: float | None
    ) -> None:
        fixture = seed_vault(
            vault_directory, last_active_at=None, inactivity_period=period
        )
        owner = OwnerActivity(owner_id=fixture.owner_id, last_active_at=FakeTimeAuthority().now())
        assert inactivity_deadline(owner, fixture.vault, UNIT) is None


class TestInactivityMonitor:
    @pytest.mark.asyncio
    async def test_active_owner_is_left_alone(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        fake_time_authority.advance_units(10, UNIT)  # exactly at the deadline

        assert await engine.inactivity_monitor.run_once() == []

    @pytest.mark.asyncio
    async def test_inactive_owner_gets_pending_release(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
        notifier: NotifierStub,
        audit_sink: AuditSinkStub,
    ) -> None:
        fixture = seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        fake_time_authority.advance_units(11, UNIT)

        created = await engine.inactivity_monitor.run_once()

        assert len(created) == 1
        release = created[0]
        assert release.status == ReleaseStatus.PENDING
        assert release.vault_id == fixture.vault_id
        assert release.grace_period_end == fake_time_authority.now() + timedelta(minutes=3)
        assert release.approvals_needed == 2
        vault = await vault_directory.get_vault(fixture.vault_id)
        assert vault is not None and vault.release_triggered
        # Trigger is silent towards participants
        assert notifier.sent == []
        [event] = audit_sink.events_of_type(RELEASE_TRIGGERED_EVENT_TYPE)
        assert event.details["source"] == "inactivity"

    @pytest.mark.asyncio
    async def test_rerun_is_a_no_op(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        fake_time_authority.advance_units(11, UNIT)

        assert len(await engine.inactivity_monitor.run_once()) == 1
        assert await engine.inactivity_monitor.run_once() == []

    @pytest.mark.asyncio
    async def test_marker_blocks_new_release_after_terminal(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        fixture = seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        fake_time_authority.advance_units(11, UNIT)
        [release] = await engine.inactivity_monitor.run_once()
        await engine.release_service.revoke_release(release.id, fixture.owner_id)

        assert await engine.inactivity_monitor.run_once() == []

    @pytest.mark.asyncio
    async def test_vault_without_rule_set_is_skipped(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        seed_vault(
            vault_directory, last_active_at=fake_time_authority.now(), with_rule_set=False
        )
        fake_time_authority.advance_units(1000, UNIT)

        assert await engine.inactivity_monitor.run_once() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("period", [None, 0])
    async def test_vault_not_monitoring_inactivity_is_skipped(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
        period: float | None,
    ) -> None:
        fixture = seed_vault(
            vault_directory,
            last_active_at=fake_time_authority.now(),
            inactivity_period=period,
        )
        assert fixture.vault.rule_set is not None
        assert not fixture.vault.rule_set.monitors_inactivity
        fake_time_authority.advance_units(1000, UNIT)

        assert await engine.inactivity_monitor.run_once() == []
        assert await engine.releases.get_active_for_vault(fixture.vault_id) is None


class TestReleaseOpener:
    @pytest.mark.asyncio
    async def test_manual_trigger_while_active(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        fixture = seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        first = await engine.release_service.trigger_release(fixture.vault_id)

        with pytest.raises(ReleaseAlreadyActiveError) as exc_info:
            await engine.release_service.trigger_release(fixture.vault_id)
        assert exc_info.value.existing_release_id == first.id

    @pytest.mark.asyncio
    async def test_manual_trigger_records_source_and_actor(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
        audit_sink: AuditSinkStub,
    ) -> None:
        fixture = seed_vault(vault_directory, last_active_at=fake_time_authority.now())
        actor = uuid4()

        await engine.release_service.trigger_release(fixture.vault_id, actor_id=actor)

        [event] = audit_sink.events_of_type(RELEASE_TRIGGERED_EVENT_TYPE)
        assert event.details["source"] == TRIGGER_SOURCE_MANUAL
        assert event.actor_id == str(actor)

    @pytest.mark.asyncio
    async def test_no_policy(
        self,
        engine: ReleaseEngine,
        vault_directory: VaultDirectoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        fixture = seed_vault(
            vault_directory, last_active_at=fake_time_authority.now(), with_rule_set=False
        )
        with pytest.raises(NoPolicyError):
            await engine.release_service.trigger_release(fixture.vault_id)
