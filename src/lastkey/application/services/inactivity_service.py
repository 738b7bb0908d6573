"""Owner inactivity queries and commands.

Operations:
- get_owner_inactivity_status: per owned vault, whether the owner is still
  inside the inactivity window or overdue, with summary counts
- record_owner_activity: heartbeat refreshing last_active_at
- reset_vault_release: clear the release_triggered marker so a new
  inactivity episode can begin
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.application.services.inactivity_monitor_service import (
    inactivity_deadline,
)
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.domain.errors.release import ReleaseAlreadyActiveError
from lastkey.domain.errors.vault import (
    ActivityNotTrackedError,
    OwnerNotFoundError,
    VaultNotFoundError,
)
from lastkey.domain.events.release import (
    RELEASE_SYSTEM_ACTOR_ID,
    VAULT_RELEASE_RESET_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.models.release import ReleaseStatus
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import OwnerActivity
from lastkey.infrastructure.observability.logging import get_logger_for_service


class VaultInactivityState(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    NO_INACTIVITY_RULE = "no_inactivity_rule"


@dataclass(frozen=True)
class VaultInactivityStatus:
    """Inactivity state of one owned vault.

    Attributes:
        threshold_at: When the owner becomes (or became) inactive.
        time_remaining: Left before threshold_at, ACTIVE only.
        overdue_by: Time since threshold_at, INACTIVE only.
        active_release_status: Status of the vault's active release, if any.
    """

    vault_id: UUID
    vault_title: str
    state: VaultInactivityState
    inactivity_period: float | None = None
    inactivity_period_description: str | None = None
    threshold_at: datetime | None = None
    time_remaining: timedelta | None = None
    overdue_by: timedelta | None = None
    has_active_release: bool = False
    active_release_status: ReleaseStatus | None = None


@dataclass(frozen=True)
class OwnerInactivityStatus:
    owner_id: UUID
    last_active_at: datetime
    current_time: datetime
    inactive_for: timedelta
    time_unit: TimeUnit
    vaults: list[VaultInactivityStatus] = field(default_factory=list)

    def count(self, state: VaultInactivityState) -> int:
        return sum(1 for v in self.vaults if v.state == state)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "active_vaults": self.count(VaultInactivityState.ACTIVE),
            "inactive_vaults": self.count(VaultInactivityState.INACTIVE),
            "no_rule_vaults": self.count(VaultInactivityState.NO_INACTIVITY_RULE),
        }


class InactivityService:
    """Inactivity status, heartbeats and marker resets."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        vault_directory: VaultDirectoryProtocol,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        time_unit: TimeUnit,
    ) -> None:
        self._releases = releases
        self._vaults = vault_directory
        self._audit = audit
        self._time = time_authority
        self._time_unit = time_unit
        self._log = get_logger_for_service("inactivity_service")

    async def get_owner_inactivity_status(self, owner_id: UUID) -> OwnerInactivityStatus:
        """Inactivity status of every vault the owner has.

        Raises:
            OwnerNotFoundError: If the owner is unknown.
            ActivityNotTrackedError: If the owner has no last_active_at.
        """
        owner = await self._vaults.get_owner_activity(owner_id)
        if owner is None:
            raise OwnerNotFoundError(owner_id)
        if owner.last_active_at is None:
            raise ActivityNotTrackedError(owner_id)

        now = self._time.now()
        statuses: list[VaultInactivityStatus] = []
        for vault in await self._vaults.list_vaults_for_owner(owner_id):
            deadline = inactivity_deadline(owner, vault, self._time_unit)
            if deadline is None or vault.rule_set is None:
                statuses.append(
                    VaultInactivityStatus(
                        vault_id=vault.id,
                        vault_title=vault.title,
                        state=VaultInactivityState.NO_INACTIVITY_RULE,
                    )
                )
                continue

            period = vault.rule_set.inactivity_period
            description = self._time_unit.describe(period) if period else None
            if now > deadline:
                active = await self._releases.get_active_for_vault(vault.id)
                statuses.append(
                    VaultInactivityStatus(
                        vault_id=vault.id,
                        vault_title=vault.title,
                        state=VaultInactivityState.INACTIVE,
                        inactivity_period=period,
                        inactivity_period_description=description,
                        threshold_at=deadline,
                        overdue_by=now - deadline,
                        has_active_release=active is not None,
                        active_release_status=active.status if active else None,
                    )
                )
            else:
                statuses.append(
                    VaultInactivityStatus(
                        vault_id=vault.id,
                        vault_title=vault.title,
                        state=VaultInactivityState.ACTIVE,
                        inactivity_period=period,
                        inactivity_period_description=description,
                        threshold_at=deadline,
                        time_remaining=deadline - now,
                    )
                )

        return OwnerInactivityStatus(
            owner_id=owner_id,
            last_active_at=owner.last_active_at,
            current_time=now,
            inactive_for=now - owner.last_active_at,
            time_unit=self._time_unit,
            vaults=statuses,
        )

    async def record_owner_activity(self, owner_id: UUID) -> OwnerActivity:
        """Refresh the owner's last_active_at to now.

        Raises:
            OwnerNotFoundError: If the owner is unknown.
        """
        activity = await self._vaults.record_activity(owner_id, self._time.now())
        self._log.debug("owner_activity_recorded", owner_id=str(owner_id))
        return activity

    async def reset_vault_release(
        self,
        vault_id: UUID,
        actor_id: UUID | None = None,
    ) -> OwnerActivity:
        """Clear the vault's release_triggered marker and refresh its owner.

        Past releases are kept as history.

        Raises:
            VaultNotFoundError: If the vault is unknown.
            ReleaseAlreadyActiveError: While the vault has an active release.
        """
        vault = await self._vaults.get_vault(vault_id)
        if vault is None:
            raise VaultNotFoundError(vault_id)
        active = await self._releases.get_active_for_vault(vault_id)
        if active is not None:
            raise ReleaseAlreadyActiveError(vault_id, existing_release_id=active.id)

        now = self._time.now()
        await self._vaults.clear_release_triggered(vault_id)
        activity = await self._vaults.record_activity(vault.owner_id, now)

        await self._audit.record(
            ReleaseAuditEvent(
                event_type=VAULT_RELEASE_RESET_EVENT_TYPE,
                vault_id=vault_id,
                actor_id=str(actor_id) if actor_id else RELEASE_SYSTEM_ACTOR_ID,
                occurred_at=now,
                details={"owner_id": str(vault.owner_id)},
            )
        )
        self._log.info(
            "vault_release_reset",
            vault_id=str(vault_id),
            owner_id=str(vault.owner_id),
        )
        return activity
