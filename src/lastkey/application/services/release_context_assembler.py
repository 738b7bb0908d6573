"""Builds the ReleaseContext read model for one operation."""

from __future__ import annotations

from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.domain.errors.vault import NoPolicyError, VaultNotFoundError
from lastkey.domain.models.release import Release
from lastkey.domain.models.release_context import ReleaseContext


class ReleaseContextAssembler:
    """Fetches a release's vault, rule set and participants in one step.

    The state machine and notification code work on the resulting
    ReleaseContext and never query the vault directory themselves.
    """

    def __init__(self, vault_directory: VaultDirectoryProtocol) -> None:
        self._vaults = vault_directory

    async def assemble(self, release: Release) -> ReleaseContext:
        """Assemble the context of ``release``.

        Raises:
            VaultNotFoundError: If the release's vault is gone.
            NoPolicyError: If the vault has no rule set.
        """
        vault = await self._vaults.get_vault(release.vault_id)
        if vault is None:
            raise VaultNotFoundError(release.vault_id)
        if vault.rule_set is None:
            raise NoPolicyError(release.vault_id)
        return ReleaseContext(release=release, vault=vault, rule_set=vault.rule_set)
