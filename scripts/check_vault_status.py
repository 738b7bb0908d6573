#!/usr/bin/env python3
"""Print the release status of a vault and, optionally, its owner's inactivity.

Reads from the configured store (DATABASE_URL), so it is only meaningful
against PostgreSQL.

Usage:
    python scripts/check_vault_status.py <vault_id>
    python scripts/check_vault_status.py <vault_id> --owner <owner_id>
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from uuid import UUID

from dotenv import load_dotenv

from lastkey.application.services.inactivity_service import OwnerInactivityStatus
from lastkey.application.services.release_service import VaultReleaseStatus
from lastkey.bootstrap.database import close_database_engine
from lastkey.bootstrap.release_engine import build_release_engine
from lastkey.domain.exceptions import LastKeyError
from lastkey.infrastructure.observability.logging import configure_structlog

load_dotenv()


def print_section(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")


def print_release_status(status: VaultReleaseStatus) -> None:
    print_section(f"Vault {status.vault_id}")
    if status.release_id is None:
        print("  No release on record.")
        return
    print(f"  Release:          {status.release_id}")
    print(f"  Status:           {status.status.value if status.status else '-'}")
    print(f"  Active:           {status.has_active_release}")
    print(f"  Released:         {status.is_released}")
    print(f"  Triggered at:     {status.triggered_at}")
    print(f"  Grace period end: {status.grace_period_end} (in grace: {status.in_grace_period})")
    print(f"  Countdown end:    {status.countdown_end} (in time-lock: {status.in_time_lock})")
    print(f"  Approvals:        {status.approvals_received}/{status.approvals_needed}")
    if status.completed_at:
        print(f"  Completed at:     {status.completed_at}")


def print_owner_status(status: OwnerInactivityStatus) -> None:
    print_section(f"Owner {status.owner_id}")
    print(f"  Last active:  {status.last_active_at}")
    print(f"  Inactive for: {status.inactive_for}")
    for vault in status.vaults:
        line = f"  - {vault.vault_title} [{vault.state.value}]"
        if vault.time_remaining is not None:
            line += f" remaining {vault.time_remaining}"
        if vault.overdue_by is not None:
            line += f" overdue by {vault.overdue_by}"
        if vault.active_release_status is not None:
            line += f" release {vault.active_release_status.value}"
        print(line)
    print(f"  Summary: {status.summary}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Show vault release status")
    parser.add_argument("vault_id", type=UUID)
    parser.add_argument("--owner", type=UUID, help="Also show this owner's inactivity")
    args = parser.parse_args()

    configure_structlog(environment="development")
    engine = build_release_engine()
    try:
        print_release_status(
            await engine.release_service.get_vault_release_status(args.vault_id)
        )
        if args.owner:
            print_owner_status(
                await engine.inactivity_service.get_owner_inactivity_status(args.owner)
            )
    except LastKeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await close_database_engine()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
