"""Opening a new release for a vault.

Shared by the inactivity monitor and the manual trigger so both paths
produce the same release, marker and audit event.
"""

from __future__ import annotations

from uuid6 import uuid7

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.domain.errors.release import ReleaseAlreadyActiveError
from lastkey.domain.errors.vault import NoPolicyError
from lastkey.domain.events.release import (
    RELEASE_SYSTEM_ACTOR_ID,
    RELEASE_TRIGGERED_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.models.release import Release
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import Vault
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service

TRIGGER_SOURCE_INACTIVITY = "inactivity"
TRIGGER_SOURCE_MANUAL = "manual"


class ReleaseOpener:
    """Creates pending releases and sets the vault's inactivity marker.

    Opening is silent: no participant is notified until the grace period
    ends. Only the audit event is recorded.
    """

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        vault_directory: VaultDirectoryProtocol,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        time_unit: TimeUnit,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._releases = releases
        self._vaults = vault_directory
        self._audit = audit
        self._time = time_authority
        self._time_unit = time_unit
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("release_opener")

    async def open(
        self,
        vault: Vault,
        *,
        source: str,
        actor_id: str = RELEASE_SYSTEM_ACTOR_ID,
    ) -> Release:
        """Open a pending release for ``vault``.

        Args:
            vault: The vault, as read from the vault directory.
            source: TRIGGER_SOURCE_INACTIVITY or TRIGGER_SOURCE_MANUAL.
            actor_id: Who triggered it, for the audit trail.

        Returns:
            The stored pending release.

        Raises:
            NoPolicyError: If the vault has no rule set.
            ReleaseAlreadyActiveError: If the vault already has an active
                release, including one created concurrently.
        """
        if vault.rule_set is None:
            raise NoPolicyError(vault.id)

        existing = await self._releases.get_active_for_vault(vault.id)
        if existing is not None:
            raise ReleaseAlreadyActiveError(vault.id, existing_release_id=existing.id)

        now = self._time.now()
        release = release_state_machine.open_release(
            release_id=uuid7(),
            rule_set=vault.rule_set,
            time_unit=self._time_unit,
            now=now,
        )
        # Raises ReleaseAlreadyActiveError if another path won the race
        created = await self._releases.create(release)
        await self._vaults.mark_release_triggered(vault.id)

        self._metrics.increment_transitions(created.status.value)
        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_TRIGGERED_EVENT_TYPE,
                vault_id=vault.id,
                release_id=created.id,
                actor_id=actor_id,
                occurred_at=now,
                details={
                    "source": source,
                    "grace_period_end": created.grace_period_end.isoformat(),
                    "approvals_needed": created.approvals_needed,
                },
            )
        )
        self._log.info(
            "release_triggered",
            release_id=str(created.id),
            vault_id=str(vault.id),
            source=source,
            grace_period_end=created.grace_period_end.isoformat(),
        )
        return created
