"""In-memory vault directory.

Stands in for the external vault-management collaborator: tests and the
simulation script seed vaults and owners with add_vault() and add_owner().
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from uuid import UUID

from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.domain.errors.vault import OwnerNotFoundError, VaultNotFoundError
from lastkey.domain.models.vault import OwnerActivity, Vault


class VaultDirectoryStub(VaultDirectoryProtocol):
    """In-memory VaultDirectoryProtocol.

    Attributes:
        _vaults: Map of vault id to Vault.
        _owners: Map of owner id to OwnerActivity.
    """

    def __init__(self) -> None:
        self._vaults: dict[UUID, Vault] = {}
        self._owners: dict[UUID, OwnerActivity] = {}
        self._lock = asyncio.Lock()

    def add_vault(self, vault: Vault) -> None:
        """Seed or replace a vault."""
        self._vaults[vault.id] = vault

    def add_owner(self, owner: OwnerActivity) -> None:
        """Seed or replace an owner's activity record."""
        self._owners[owner.owner_id] = owner

    async def get_vault(self, vault_id: UUID) -> Vault | None:
        return self._vaults.get(vault_id)

    async def list_vaults_for_owner(self, owner_id: UUID) -> list[Vault]:
        return [v for v in self._vaults.values() if v.owner_id == owner_id]

    async def list_vaults_for_participant(self, participant_id: UUID) -> list[Vault]:
        return [
            v
            for v in self._vaults.values()
            if v.is_owner(participant_id) or v.is_participant(participant_id)
        ]

    async def list_owner_activity(self) -> list[OwnerActivity]:
        return [o for o in self._owners.values() if o.last_active_at is not None]

    async def get_owner_activity(self, owner_id: UUID) -> OwnerActivity | None:
        return self._owners.get(owner_id)

    async def record_activity(self, owner_id: UUID, at: datetime) -> OwnerActivity:
        async with self._lock:
            owner = self._owners.get(owner_id)
            if owner is None:
                raise OwnerNotFoundError(owner_id)
            updated = OwnerActivity(owner_id=owner_id, last_active_at=at, email=owner.email)
            self._owners[owner_id] = updated
            return updated

    async def mark_release_triggered(self, vault_id: UUID) -> None:
        await self._set_marker(vault_id, True)

    async def clear_release_triggered(self, vault_id: UUID) -> None:
        await self._set_marker(vault_id, False)

    async def _set_marker(self, vault_id: UUID, triggered: bool) -> None:
        async with self._lock:
            vault = self._vaults.get(vault_id)
            if vault is None:
                raise VaultNotFoundError(vault_id)
            self._vaults[vault_id] = vault.with_release_triggered(triggered)
