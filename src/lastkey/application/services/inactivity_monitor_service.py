"""Inactivity monitor.

One pass scans every owner with a recorded last-activity timestamp and every
vault they own with an inactivity period. A vault is due when

    now > last_active_at + inactivity_period

and its release_triggered marker is unset and it has no active release. Due
vaults get a pending release (see ReleaseOpener). Re-running the pass while
a release is active is a no-op for that vault.
"""

from __future__ import annotations

from datetime import datetime

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.application.services.release_opener import (
    TRIGGER_SOURCE_INACTIVITY,
    ReleaseOpener,
)
from lastkey.domain.errors.base import ReleaseConflictError, ReleaseLookupError
from lastkey.domain.models.release import Release
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import OwnerActivity, Vault
from lastkey.infrastructure.observability.logging import get_logger_for_service


def inactivity_deadline(
    owner: OwnerActivity, vault: Vault, time_unit: TimeUnit
) -> datetime | None:
    """When the owner counts as inactive for this vault, or None if never."""
    rule_set = vault.rule_set
    if owner.last_active_at is None or rule_set is None or not rule_set.monitors_inactivity:
        return None
    return owner.last_active_at + time_unit.duration(rule_set.inactivity_period)


class InactivityMonitorService:
    """Originates releases for vaults whose owners went quiet."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        vault_directory: VaultDirectoryProtocol,
        opener: ReleaseOpener,
        time_authority: TimeAuthorityProtocol,
        time_unit: TimeUnit,
    ) -> None:
        self._releases = releases
        self._vaults = vault_directory
        self._opener = opener
        self._time = time_authority
        self._time_unit = time_unit
        self._log = get_logger_for_service("inactivity_monitor")

    async def run_once(self) -> list[Release]:
        """Run one scan.

        Returns:
            The releases created by this pass.
        """
        now = self._time.now()
        created: list[Release] = []
        owners = await self._vaults.list_owner_activity()

        for owner in owners:
            for vault in await self._vaults.list_vaults_for_owner(owner.owner_id):
                release = await self._check_vault(owner, vault, now)
                if release is not None:
                    created.append(release)

        self._log.info(
            "inactivity_scan_complete",
            owners_scanned=len(owners),
            releases_created=len(created),
        )
        return created

    async def _check_vault(
        self, owner: OwnerActivity, vault: Vault, now: datetime
    ) -> Release | None:
        deadline = inactivity_deadline(owner, vault, self._time_unit)
        if deadline is None or now <= deadline:
            return None
        if vault.release_triggered:
            return None
        if await self._releases.get_active_for_vault(vault.id) is not None:
            return None

        log = self._log.bind(vault_id=str(vault.id), owner_id=str(owner.owner_id))
        try:
            release = await self._opener.open(vault, source=TRIGGER_SOURCE_INACTIVITY)
        except ReleaseConflictError as e:
            # A manual trigger opened one between our check and create
            log.info("inactivity_trigger_skipped", reason=str(e))
            return None
        except ReleaseLookupError as e:
            log.warning("inactivity_trigger_failed", error=str(e))
            return None

        log.info(
            "owner_inactive_release_triggered",
            release_id=str(release.id),
            last_active_at=owner.last_active_at.isoformat() if owner.last_active_at else None,
            inactivity_deadline=deadline.isoformat(),
        )
        return release
