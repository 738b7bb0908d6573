"""Request-driven release operations.

Operations:
- trigger_release: open a release manually
- finalize_release: release an approved vault whose time-lock ended
- revoke_release: owner aborts a release that has not been released
- get_vault_release_status: read-only status projection for a vault
- list_releases_for_participant / list_pending_releases_for_participant

Each operation is single-shot and fails fast with a domain error when its
preconditions do not hold.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.application.services.release_context_assembler import (
    ReleaseContextAssembler,
)
from lastkey.application.services.release_notification_service import (
    ReleaseNotificationService,
)
from lastkey.application.services.release_opener import (
    TRIGGER_SOURCE_MANUAL,
    ReleaseOpener,
)
from lastkey.application.services.release_updater import ReleaseUpdater
from lastkey.application.services.time_lock_service import TimeLockService
from lastkey.domain.errors.release import ReleaseNotFoundError
from lastkey.domain.errors.vault import OwnerRoleRequiredError, VaultNotFoundError
from lastkey.domain.events.release import (
    RELEASE_REVOKED_EVENT_TYPE,
    RELEASE_SYSTEM_ACTOR_ID,
    ReleaseAuditEvent,
)
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service

PENDING_STATUSES: tuple[ReleaseStatus, ...] = (
    ReleaseStatus.PENDING,
    ReleaseStatus.IN_PROGRESS,
)


@dataclass(frozen=True)
class VaultReleaseStatus:
    """Status projection of a vault's most recent non-rejected release.

    Downstream access control reads ``is_released`` to decide whether
    beneficiaries may open the vault.
    """

    vault_id: UUID
    has_active_release: bool
    is_released: bool
    in_grace_period: bool = False
    in_time_lock: bool = False
    release_id: UUID | None = None
    status: ReleaseStatus | None = None
    triggered_at: datetime | None = None
    grace_period_end: datetime | None = None
    countdown_end: datetime | None = None
    completed_at: datetime | None = None
    approvals_received: int | None = None
    approvals_needed: int | None = None

    @classmethod
    def empty(cls, vault_id: UUID) -> VaultReleaseStatus:
        return cls(vault_id=vault_id, has_active_release=False, is_released=False)

    @classmethod
    def from_release(cls, release: Release, now: datetime) -> VaultReleaseStatus:
        return cls(
            vault_id=release.vault_id,
            has_active_release=release.is_active,
            is_released=release.is_released,
            in_grace_period=release.is_in_grace_period(now),
            in_time_lock=release.is_in_time_lock(now),
            release_id=release.id,
            status=release.status,
            triggered_at=release.triggered_at,
            grace_period_end=release.grace_period_end,
            countdown_end=release.countdown_end,
            completed_at=release.completed_at,
            approvals_received=release.approvals_received,
            approvals_needed=release.approvals_needed,
        )


class ReleaseService:
    """Trigger, finalize, revoke and query releases."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        vault_directory: VaultDirectoryProtocol,
        opener: ReleaseOpener,
        updater: ReleaseUpdater,
        time_lock: TimeLockService,
        assembler: ReleaseContextAssembler,
        notifications: ReleaseNotificationService,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._releases = releases
        self._vaults = vault_directory
        self._opener = opener
        self._updater = updater
        self._time_lock = time_lock
        self._assembler = assembler
        self._notifications = notifications
        self._audit = audit
        self._time = time_authority
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("release_service")

    async def trigger_release(
        self,
        vault_id: UUID,
        actor_id: UUID | None = None,
    ) -> Release:
        """Open a release for a vault outside the inactivity scan.

        Like the automatic path this is silent towards participants and sets
        the vault's release_triggered marker.

        Raises:
            VaultNotFoundError: If the vault is unknown.
            NoPolicyError: If the vault has no rule set.
            ReleaseAlreadyActiveError: If the vault has an active release.
        """
        vault = await self._vaults.get_vault(vault_id)
        if vault is None:
            raise VaultNotFoundError(vault_id)
        return await self._opener.open(
            vault,
            source=TRIGGER_SOURCE_MANUAL,
            actor_id=str(actor_id) if actor_id else RELEASE_SYSTEM_ACTOR_ID,
        )

    async def finalize_release(
        self,
        release_id: UUID,
        actor_id: UUID | None = None,
    ) -> Release:
        """Release the vault if the time-lock has ended.

        Raises:
            ReleaseNotFoundError: If the release is unknown.
            ReleaseNotApprovedError: If status is not approved, including
                releases already released.
            TimeLockActiveError: If the countdown has not ended.
        """
        return await self._time_lock.finalize(
            release_id,
            actor_id=str(actor_id) if actor_id else RELEASE_SYSTEM_ACTOR_ID,
        )

    async def revoke_release(
        self,
        release_id: UUID,
        owner_id: UUID,
        reason: str | None = None,
    ) -> Release:
        """Owner revocation from pending, in_progress or approved.

        Raises:
            ReleaseNotFoundError: If the release is unknown.
            OwnerRoleRequiredError: If ``owner_id`` does not own the vault.
            ReleaseAlreadyReleasedError: If the vault was already released.
            ReleaseTerminalError: If the release was already rejected.
        """
        current = await self._releases.get(release_id)
        if current is None:
            raise ReleaseNotFoundError(release_id)
        context = await self._assembler.assemble(current)
        if not context.vault.is_owner(owner_id):
            self._log.warning(
                "revoke_forbidden",
                release_id=str(release_id),
                actor_id=str(owner_id),
            )
            raise OwnerRoleRequiredError(owner_id, context.vault.id)

        now = self._time.now()
        release, _ = await self._updater.apply(
            release_id, lambda r: release_state_machine.revoke(r, now)
        )
        self._metrics.increment_transitions(release.status.value)

        notified = await self._notifications.notify_revoked(
            context.with_release(release), reason
        )
        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_REVOKED_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                actor_id=str(owner_id),
                occurred_at=now,
                details={
                    "reason": reason,
                    "previous_status": current.status.value,
                    "approvals_received": release.approvals_received,
                },
            )
        )
        self._log.info(
            "release_revoked",
            release_id=str(release.id),
            vault_id=str(release.vault_id),
            owner_id=str(owner_id),
            notified=notified,
        )
        return release

    async def get_vault_release_status(self, vault_id: UUID) -> VaultReleaseStatus:
        """Project the vault's most recent non-rejected release.

        Raises:
            VaultNotFoundError: If the vault is unknown.
        """
        if await self._vaults.get_vault(vault_id) is None:
            raise VaultNotFoundError(vault_id)
        release = await self._releases.get_latest_for_vault(vault_id)
        if release is None:
            return VaultReleaseStatus.empty(vault_id)
        return VaultReleaseStatus.from_release(release, self._time.now())

    async def list_releases_for_participant(self, user_id: UUID) -> list[Release]:
        """Releases of every vault the user owns or participates in."""
        vaults = await self._vaults.list_vaults_for_participant(user_id)
        if not vaults:
            return []
        return await self._releases.list_for_vaults([v.id for v in vaults])

    async def list_pending_releases_for_participant(self, user_id: UUID) -> list[Release]:
        """Same as list_releases_for_participant, pending and in_progress only."""
        vaults = await self._vaults.list_vaults_for_participant(user_id)
        if not vaults:
            return []
        return await self._releases.list_for_vaults(
            [v.id for v in vaults], statuses=PENDING_STATUSES
        )
