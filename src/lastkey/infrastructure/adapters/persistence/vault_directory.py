"""PostgreSQL vault directory.

Reads vaults with their rule set and participants in two queries per lookup
and writes only the release_triggered marker and owner activity.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.domain.errors.vault import OwnerNotFoundError, VaultNotFoundError
from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.vault import (
    OwnerActivity,
    Participant,
    ParticipantRole,
    Vault,
)

VAULT_SELECT = """
    SELECT v.id, v.owner_id, v.title, v.release_triggered,
           r.vault_id AS rule_vault_id, r.inactivity_period, r.grace_period,
           r.time_lock, r.approvals_required
    FROM vaults v
    LEFT JOIN rule_sets r ON r.vault_id = v.id
"""

PARTICIPANTS_SELECT = text(
    """
    SELECT vault_id, participant_id, role, email, display_name
    FROM vault_participants
    WHERE vault_id IN :vault_ids
    ORDER BY vault_id, role, participant_id
    """
).bindparams(bindparam("vault_ids", expanding=True))


def _row_to_rule_set(row: Mapping[str, Any]) -> RuleSet | None:
    if row["rule_vault_id"] is None:
        return None
    return RuleSet(
        vault_id=row["id"],
        inactivity_period=row["inactivity_period"],
        grace_period=row["grace_period"],
        time_lock=row["time_lock"],
        approvals_required=row["approvals_required"],
    )


def _row_to_participant(row: Mapping[str, Any]) -> Participant:
    return Participant(
        participant_id=row["participant_id"],
        role=ParticipantRole(row["role"]),
        email=row["email"],
        display_name=row["display_name"],
    )


class PostgresVaultDirectory(VaultDirectoryProtocol):
    """VaultDirectoryProtocol on the vault-management tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_vault(self, vault_id: UUID) -> Vault | None:
        vaults = await self._load_vaults("WHERE v.id = :vault_id", {"vault_id": vault_id})
        return vaults[0] if vaults else None

    async def list_vaults_for_owner(self, owner_id: UUID) -> list[Vault]:
        return await self._load_vaults("WHERE v.owner_id = :owner_id", {"owner_id": owner_id})

    async def list_vaults_for_participant(self, participant_id: UUID) -> list[Vault]:
        return await self._load_vaults(
            """
            WHERE v.owner_id = :user_id
               OR v.id IN (
                   SELECT vault_id FROM vault_participants
                   WHERE participant_id = :user_id
               )
            """,
            {"user_id": participant_id},
        )

    async def list_owner_activity(self) -> list[OwnerActivity]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(
                    """
                    SELECT id, email, last_active_at FROM owners
                    WHERE last_active_at IS NOT NULL
                    """
                )
            )
            return [
                OwnerActivity(
                    owner_id=row["id"],
                    last_active_at=row["last_active_at"],
                    email=row["email"],
                )
                for row in result.mappings().all()
            ]

    async def get_owner_activity(self, owner_id: UUID) -> OwnerActivity | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT id, email, last_active_at FROM owners WHERE id = :id"),
                {"id": owner_id},
            )
            row = result.mappings().first()
            if row is None:
                return None
            return OwnerActivity(
                owner_id=row["id"], last_active_at=row["last_active_at"], email=row["email"]
            )

    async def record_activity(self, owner_id: UUID, at: datetime) -> OwnerActivity:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                text(
                    """
                    UPDATE owners SET last_active_at = :at
                    WHERE id = :id
                    RETURNING id, email, last_active_at
                    """
                ),
                {"id": owner_id, "at": at},
            )
            row = result.mappings().first()
            if row is None:
                raise OwnerNotFoundError(owner_id)
            return OwnerActivity(
                owner_id=row["id"], last_active_at=row["last_active_at"], email=row["email"]
            )

    async def mark_release_triggered(self, vault_id: UUID) -> None:
        await self._set_marker(vault_id, True)

    async def clear_release_triggered(self, vault_id: UUID) -> None:
        await self._set_marker(vault_id, False)

    async def _set_marker(self, vault_id: UUID, triggered: bool) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                text(
                    """
                    UPDATE vaults SET release_triggered = :triggered
                    WHERE id = :id
                    RETURNING id
                    """
                ),
                {"id": vault_id, "triggered": triggered},
            )
            if result.first() is None:
                raise VaultNotFoundError(vault_id)

    async def _load_vaults(self, where: str, params: dict[str, Any]) -> list[Vault]:
        async with self._session_factory() as session:
            result = await session.execute(text(f"{VAULT_SELECT} {where}"), params)
            rows = result.mappings().all()
            if not rows:
                return []
            participants = await self._load_participants(session, [row["id"] for row in rows])

        return [
            Vault(
                id=row["id"],
                owner_id=row["owner_id"],
                title=row["title"],
                rule_set=_row_to_rule_set(row),
                participants=tuple(participants.get(row["id"], ())),
                release_triggered=row["release_triggered"],
            )
            for row in rows
        ]

    async def _load_participants(
        self, session: AsyncSession, vault_ids: Sequence[UUID]
    ) -> dict[UUID, list[Participant]]:
        result = await session.execute(PARTICIPANTS_SELECT, {"vault_ids": list(vault_ids)})
        by_vault: dict[UUID, list[Participant]] = defaultdict(list)
        for row in result.mappings().all():
            by_vault[row["vault_id"]].append(_row_to_participant(row))
        return by_vault
