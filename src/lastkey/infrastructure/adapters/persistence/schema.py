"""PostgreSQL schema for the release engine.

The two uniqueness invariants live in the database:

- uq_releases_active_vault: partial unique index, one active release per vault
- uq_confirmations_release_participant: one confirmation per witness per release

Vault, rule set, participant and owner tables belong to vault management and
are only read here, except vaults.release_triggered and owners.last_active_at.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

ACTIVE_RELEASE_INDEX = "uq_releases_active_vault"
CONFIRMATION_UNIQUE_CONSTRAINT = "uq_confirmations_release_participant"

RELEASE_ENGINE_DDL: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS owners (
        id UUID PRIMARY KEY,
        email TEXT,
        last_active_at TIMESTAMPTZ
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vaults (
        id UUID PRIMARY KEY,
        owner_id UUID NOT NULL REFERENCES owners (id),
        title TEXT NOT NULL,
        release_triggered BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rule_sets (
        vault_id UUID PRIMARY KEY REFERENCES vaults (id),
        inactivity_period DOUBLE PRECISION CHECK (inactivity_period >= 0),
        grace_period DOUBLE PRECISION NOT NULL CHECK (grace_period >= 0),
        time_lock DOUBLE PRECISION NOT NULL CHECK (time_lock >= 0),
        approvals_required INTEGER NOT NULL DEFAULT 1 CHECK (approvals_required >= 1)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vault_participants (
        vault_id UUID NOT NULL REFERENCES vaults (id),
        participant_id UUID NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('beneficiary', 'shared', 'witness')),
        email TEXT,
        display_name TEXT,
        PRIMARY KEY (vault_id, participant_id, role)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS releases (
        id UUID PRIMARY KEY,
        vault_id UUID NOT NULL REFERENCES vaults (id),
        status TEXT NOT NULL
            CHECK (status IN ('pending', 'in_progress', 'approved', 'released', 'rejected')),
        triggered_at TIMESTAMPTZ NOT NULL,
        grace_period_end TIMESTAMPTZ NOT NULL,
        countdown_end TIMESTAMPTZ,
        approvals_needed INTEGER NOT NULL CHECK (approvals_needed >= 1),
        approvals_received INTEGER NOT NULL DEFAULT 0
            CHECK (approvals_received >= 0 AND approvals_received <= approvals_needed),
        completed_at TIMESTAMPTZ,
        notified_time_lock BOOLEAN NOT NULL DEFAULT FALSE,
        version INTEGER NOT NULL DEFAULT 0
    )
    """,
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_RELEASE_INDEX}
        ON releases (vault_id)
        WHERE status IN ('pending', 'in_progress', 'approved')
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_releases_status ON releases (status)
    """,
    f"""
    CREATE TABLE IF NOT EXISTS confirmations (
        id UUID PRIMARY KEY,
        release_id UUID NOT NULL REFERENCES releases (id),
        participant_id UUID NOT NULL,
        status TEXT NOT NULL CHECK (status IN ('approved', 'rejected')),
        comment TEXT,
        confirmed_at TIMESTAMPTZ NOT NULL,
        CONSTRAINT {CONFIRMATION_UNIQUE_CONSTRAINT} UNIQUE (release_id, participant_id)
    )
    """,
)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all release engine tables and indexes if missing."""
    async with engine.begin() as conn:
        for statement in RELEASE_ENGINE_DDL:
            await conn.execute(text(statement))
