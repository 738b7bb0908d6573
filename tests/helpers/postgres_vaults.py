"""Seed vault-management rows for tests that run on PostgreSQL."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import text

from lastkey.bootstrap.database import get_session_factory


@dataclass(frozen=True)
class SeededVault:
    vault_id: UUID
    owner_id: UUID
    witness_ids: list[UUID] = field(default_factory=list)
    beneficiary_ids: list[UUID] = field(default_factory=list)


async def seed_postgres_vault(
    *,
    last_active_at: datetime | None,
    inactivity_period: float | None = 1,
    grace_period: float = 1,
    time_lock: float = 1,
    approvals_required: int = 2,
    witness_count: int = 2,
    title: str = "Family documents",
) -> SeededVault:
    """Insert an owner, vault, rule set and participants."""
    seeded = SeededVault(
        vault_id=uuid4(),
        owner_id=uuid4(),
        witness_ids=[uuid4() for _ in range(witness_count)],
        beneficiary_ids=[uuid4()],
    )
    participants = [(pid, "witness") for pid in seeded.witness_ids] + [
        (pid, "beneficiary") for pid in seeded.beneficiary_ids
    ]

    async with get_session_factory()() as session, session.begin():
        await session.execute(
            text("INSERT INTO owners (id, email, last_active_at) VALUES (:id, :email, :at)"),
            {"id": seeded.owner_id, "email": "owner@example.com", "at": last_active_at},
        )
        await session.execute(
            text("INSERT INTO vaults (id, owner_id, title) VALUES (:id, :owner_id, :title)"),
            {"id": seeded.vault_id, "owner_id": seeded.owner_id, "title": title},
        )
        await session.execute(
            text(
                """
                INSERT INTO rule_sets
                    (vault_id, inactivity_period, grace_period, time_lock, approvals_required)
                VALUES (:vault_id, :inactivity, :grace, :time_lock, :approvals)
                """
            ),
            {
                "vault_id": seeded.vault_id,
                "inactivity": inactivity_period,
                "grace": grace_period,
                "time_lock": time_lock,
                "approvals": approvals_required,
            },
        )
        for index, (participant_id, role) in enumerate(participants):
            await session.execute(
                text(
                    """
                    INSERT INTO vault_participants
                        (vault_id, participant_id, role, email, display_name)
                    VALUES (:vault_id, :participant_id, :role, :email, :name)
                    """
                ),
                {
                    "vault_id": seeded.vault_id,
                    "participant_id": participant_id,
                    "role": role,
                    "email": f"{role}{index}@example.com",
                    "name": f"{role.title()} {index}",
                },
            )
    return seeded
