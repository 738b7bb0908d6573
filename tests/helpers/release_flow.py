"""Drive a seeded vault through the release phases on the test engine."""

from __future__ import annotations

from lastkey.bootstrap.release_engine import ReleaseEngine
from lastkey.domain.models.confirmation import ConfirmationDecision
from lastkey.domain.models.release import Release
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.vault_factory import VaultFixture


async def open_release(engine: ReleaseEngine, fixture: VaultFixture) -> Release:
    """Manually trigger a pending release."""
    return await engine.release_service.trigger_release(fixture.vault_id)


async def start_approval(
    engine: ReleaseEngine, fixture: VaultFixture, clock: FakeTimeAuthority
) -> Release:
    """Trigger, let the grace period lapse and promote to in_progress."""
    release = await open_release(engine, fixture)
    clock.set_time(release.grace_period_end)
    await engine.grace_period_reconciler.run_once()
    promoted = await engine.releases.get(release.id)
    assert promoted is not None
    return promoted


async def approve_all(
    engine: ReleaseEngine, fixture: VaultFixture, clock: FakeTimeAuthority
) -> Release:
    """Reach quorum with every witness approving in turn."""
    release = await start_approval(engine, fixture, clock)
    for witness_id in fixture.witness_ids[: release.approvals_needed]:
        result = await engine.confirmation_service.confirm(
            release.id, witness_id, ConfirmationDecision.APPROVED
        )
        release = result.release
    return release
