#!/usr/bin/env python3
"""Simulate a full release on compressed time against the in-memory stubs.

Walks the three release scenarios on the MINUTES scale with a frozen clock:

1. approve:  inactivity -> pending -> in_progress -> approved -> released
2. veto:     one witness rejects, the second witness is refused
3. revoke:   the owner aborts during witness approval

Usage:
    python scripts/simulate_release.py
    python scripts/simulate_release.py --scenario veto -v
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path for tests.helpers
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from prometheus_client import CollectorRegistry

from lastkey.bootstrap.release_engine import ReleaseEngine, build_release_engine
from lastkey.config.release_config import TEST_RELEASE_ENGINE_CONFIG
from lastkey.domain.errors.base import ReleaseConflictError
from lastkey.domain.models.release import Release
from lastkey.infrastructure.monitoring.metrics import MetricsCollector
from lastkey.infrastructure.observability.logging import configure_structlog
from lastkey.infrastructure.stubs import (
    AuditSinkStub,
    NotifierStub,
    VaultDirectoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.vault_factory import VaultFixture, seed_vault

SCENARIOS = ("approve", "veto", "revoke")


class Simulation:
    """One engine, one vault, one frozen clock."""

    def __init__(self) -> None:
        self.clock = FakeTimeAuthority()
        self.directory = VaultDirectoryStub()
        self.notifier = NotifierStub()
        self.audit = AuditSinkStub()
        self.config = TEST_RELEASE_ENGINE_CONFIG
        self.engine: ReleaseEngine = build_release_engine(
            self.config,
            time_authority=self.clock,
            vault_directory=self.directory,
            notifier=self.notifier,
            audit_sink=self.audit,
            metrics=MetricsCollector(registry=CollectorRegistry()),
            use_database=False,
        )
        self.vault: VaultFixture = seed_vault(
            self.directory,
            last_active_at=self.clock.now(),
            inactivity_period=1,
            grace_period=1,
            time_lock=1,
            approvals_required=2,
        )

    def advance(self, units: float) -> None:
        self.clock.advance_units(units, self.config.time_unit)
        print(f"\n  --- Advanced {units} {self.config.time_unit.value} ---")
        print(f"  Time: {self.clock.now().isoformat()}")

    async def current(self) -> Release | None:
        return await self.engine.releases.get_latest_for_vault(
            self.vault.vault_id, include_rejected=True
        )

    async def show(self, label: str) -> Release | None:
        release = await self.current()
        if release is None:
            print(f"  {label}: no release")
            return None
        print(
            f"  {label}: status={release.status.value} "
            f"approvals={release.approvals_received}/{release.approvals_needed} "
            f"countdown_end={release.countdown_end} completed_at={release.completed_at}"
        )
        return release

    async def open_and_promote(self) -> Release:
        """Go idle past the inactivity period, then past the grace period."""
        self.advance(1.5)
        await self.engine.scheduler.run_once()
        await self.show("After inactivity scan")

        self.advance(1.5)
        await self.engine.scheduler.run_once()
        release = await self.show("After grace-period scan")
        assert release is not None
        return release


def print_section(title: str) -> None:
    """Print a section header."""
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")


async def run_approve(verbose: bool) -> bool:
    print_section("Scenario 1: quorum approval and release")
    sim = Simulation()
    release = await sim.open_and_promote()
    w1, w2 = sim.vault.witness_ids

    await sim.engine.confirmation_service.confirm(release.id, w1, "approved")
    await sim.show("After W1 approves")
    await sim.engine.confirmation_service.confirm(release.id, w2, "approved")
    await sim.show("After W2 approves")

    sim.advance(1.5)
    await sim.engine.scheduler.run_once()
    final = await sim.show("After time-lock scan")

    if verbose:
        print_notifications(sim.notifier)
        print_audit(sim.audit)
    return final is not None and final.is_released


async def run_veto(verbose: bool) -> bool:
    print_section("Scenario 2: single witness veto")
    sim = Simulation()
    release = await sim.open_and_promote()
    w1, w2 = sim.vault.witness_ids

    await sim.engine.confirmation_service.confirm(release.id, w1, "rejected", comment="Not yet")
    final = await sim.show("After W1 rejects")
    try:
        await sim.engine.confirmation_service.confirm(release.id, w2, "approved")
    except ReleaseConflictError as e:
        print(f"  W2 refused: {e}")
    else:
        print("  W2 was accepted after a veto")
        return False

    if verbose:
        print_notifications(sim.notifier)
        print_audit(sim.audit)
    return final is not None and final.status.value == "rejected"


async def run_revoke(verbose: bool) -> bool:
    print_section("Scenario 3: owner revokes during approval")
    sim = Simulation()
    release = await sim.open_and_promote()

    await sim.engine.release_service.revoke_release(
        release.id, sim.vault.owner_id, reason="I am still here"
    )
    final = await sim.show("After owner revoke")

    if verbose:
        print_notifications(sim.notifier)
        print_audit(sim.audit)
    return final is not None and final.status.value == "rejected"


def print_notifications(notifier: NotifierStub) -> None:
    print("\n  Notifications:")
    for sent in notifier.sent:
        print(f"    -> {sent.recipient.role.value:12s} {sent.subject}")


def print_audit(audit: AuditSinkStub) -> None:
    print(f"\n  Audit trail (chain valid: {audit.verify_chain()}):")
    for entry in audit.entries:
        print(f"    {entry.event.event_type:32s} actor={entry.event.actor_id}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Simulate release scenarios")
    parser.add_argument("--scenario", choices=(*SCENARIOS, "all"), default="all")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    configure_structlog(environment="development")
    runners = {"approve": run_approve, "veto": run_veto, "revoke": run_revoke}
    selected = SCENARIOS if args.scenario == "all" else (args.scenario,)

    results = {name: await runners[name](args.verbose) for name in selected}

    print_section("Summary")
    for name, ok in results.items():
        print(f"  {name:8s} {'OK' if ok else 'FAILED'}")
    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
