"""Vault directory port.

Vaults, rule sets, participants and owner activity belong to the external
vault-management collaborator. The engine reads them and writes only the
release_triggered marker and the owner's last-activity timestamp.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from lastkey.domain.models.vault import OwnerActivity, Vault


class VaultDirectoryProtocol(Protocol):
    """Protocol for read access to vault data plus the inactivity marker."""

    async def get_vault(self, vault_id: UUID) -> Vault | None:
        """Return the vault with its rule set and participants, or None."""
        ...

    async def list_vaults_for_owner(self, owner_id: UUID) -> list[Vault]:
        ...

    async def list_vaults_for_participant(self, participant_id: UUID) -> list[Vault]:
        """Vaults where the user is owner or a participant of any role."""
        ...

    async def list_owner_activity(self) -> list[OwnerActivity]:
        """Owners with a recorded last-activity timestamp."""
        ...

    async def get_owner_activity(self, owner_id: UUID) -> OwnerActivity | None:
        ...

    async def record_activity(self, owner_id: UUID, at: datetime) -> OwnerActivity:
        """Set the owner's last-activity timestamp.

        Raises:
            OwnerNotFoundError: If the owner is unknown.
        """
        ...

    async def mark_release_triggered(self, vault_id: UUID) -> None:
        """Set the vault's release_triggered marker."""
        ...

    async def clear_release_triggered(self, vault_id: UUID) -> None:
        """Clear the vault's release_triggered marker."""
        ...
