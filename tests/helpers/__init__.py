"""Test helpers for lastkey tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    seed_vault: Vault, owner and rule set fixture data for the stubs
    open_release / start_approval / approve_all: Move a seeded vault to a phase
    yield_after_reads: Make store reads suspend so concurrent callers interleave

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.interleaving import yield_after_reads
from tests.helpers.release_flow import approve_all, open_release, start_approval
from tests.helpers.vault_factory import VaultFixture, seed_vault

__all__ = [
    "FakeTimeAuthority",
    "VaultFixture",
    "approve_all",
    "open_release",
    "seed_vault",
    "start_approval",
    "yield_after_reads",
]
